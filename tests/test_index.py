"""Tests for index construction, persistence and staleness."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from wv.exceptions import DocumentError
from wv.index import (
    IndexEntry,
    SchemeIndex,
    build_index,
    edition_sort_key,
    get_or_build_index,
    index_is_stale,
    load_edition_index,
    load_index,
    save_index,
)


def _touch_later(path: Path, seconds: float = 10) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


def test_by_composer(sample_data: Path) -> None:
    index = build_index(sample_data)
    assert index.by_composer["beethoven"] == [f"ab00000{i}" for i in range(1, 6)]
    assert index.by_composer["mozart"] == ["ef000001", "ef000002"]
    assert index.composition_count == 15


def test_current_and_superseded(sample_data: Path) -> None:
    index = build_index(sample_data)
    k = index.scheme_index("mozart", "k")
    assert set(k.current) == {"331", "545"}
    assert set(k.superseded) == {"300i"}
    assert k.current_number_for("ef000001") == "331"
    assert index.catalog_entry_count == 16


def test_note_is_indexed(sample_data: Path) -> None:
    index = build_index(sample_data)
    assert index.scheme_index("mozart", "k").current["545"] == IndexEntry("ef000002", "Sonata facile")


def test_collection_delegation_registers_composer(sample_data: Path) -> None:
    index = build_index(sample_data)
    assert index.by_composer["bach"] == ["0a000001", "0a000002"]
    assert index.scheme_index("bach", "bwv").current["846"].id == "0a000001"


def test_numbers_are_normalized(data_dir: Path, write_composition) -> None:
    write_composition("abcd0001", [{"composer": "haydn", "catalog": [{"scheme": "hob", "number": "XVI:52"}]}])
    index = build_index(data_dir)
    assert "xvi:52" in index.scheme_index("haydn", "hob").current


def test_multi_composer_attribution(data_dir: Path, write_composition) -> None:
    write_composition(
        "abcd0001",
        [
            {"composer": "hoffstetter", "catalog": [{"scheme": "op", "number": "3/5"}]},
            {"composer": "haydn", "catalog": [{"scheme": "hob", "number": "iii:17"}]},
        ],
    )
    index = build_index(data_dir)
    assert index.by_composer == {"hoffstetter": ["abcd0001"], "haydn": ["abcd0001"]}
    assert "iii:17" in index.scheme_index("haydn", "hob").current


def test_current_number_never_superseded(data_dir: Path, write_composition) -> None:
    write_composition("abcd0001", [{"composer": "mozart", "catalog": [{"scheme": "k", "number": "331"}, {"scheme": "k", "number": "300i"}]}])
    write_composition("abcd0002", [{"composer": "mozart", "catalog": [{"scheme": "k", "number": "300i"}]}])
    k = build_index(data_dir).scheme_index("mozart", "k")
    assert k.current["300i"].id == "abcd0002"
    assert "300i" not in k.superseded


def test_broken_documents_are_skipped(data_dir: Path, write_composition) -> None:
    write_composition("abcd0001", [{"composer": "bach", "catalog": [{"scheme": "bwv", "number": "1"}]}])
    broken = data_dir / "compositions" / "ab" / "cd0002.json"
    broken.write_text("{oops")
    index = build_index(data_dir)
    assert index.by_composer == {"bach": ["abcd0001"]}


def test_non_utf8_document_is_skipped(data_dir: Path, write_composition) -> None:
    write_composition("abcd0001", [{"composer": "bach", "catalog": [{"scheme": "bwv", "number": "1"}]}])
    (data_dir / "compositions" / "ab" / "cd0002.json").write_bytes(b'{"id": "abcd0002", "title": "\xff"}')
    index = build_index(data_dir)
    assert index.by_composer == {"bach": ["abcd0001"]}


def test_missing_compositions_dir(tmp_path: Path) -> None:
    index = build_index(tmp_path)
    assert index.by_composer == {}
    assert index.catalog == {}


def test_cumulative_editions(sample_data: Path) -> None:
    index = build_index(sample_data)
    first = index.edition_map("mozart", "k", "1")
    ninth = index.edition_map("mozart", "k", "9")
    assert first == {"300i": "ef000001", "545": "ef000002"}
    assert ninth == {"331": "ef000001", "545": "ef000002"}
    assert index.edition_map("mozart", "k", "3") is None


def test_edition_labels_sort_numerically(data_dir: Path, write_composition) -> None:
    write_composition("abcd0001", [{"composer": "m", "catalog": [{"scheme": "k", "number": "a", "edition": "2"}, {"scheme": "k", "number": "b", "edition": "10"}]}])
    index = build_index(data_dir)
    assert index.edition_map("m", "k", "2") == {"a": "abcd0001"}
    assert index.edition_map("m", "k", "10") == {"b": "abcd0001"}
    assert sorted(["10", "2", "anh", "9"], key=edition_sort_key) == ["2", "9", "10", "anh"]


def test_scheme_index_round_trip() -> None:
    scheme_index = SchemeIndex()
    scheme_index.add_current("331", IndexEntry("ef000001"))
    scheme_index.add_superseded("300i", IndexEntry("ef000001", "old"))
    assert SchemeIndex.from_dict(scheme_index.to_dict()) == scheme_index


def test_save_and_load(sample_data: Path) -> None:
    index = build_index(sample_data)
    out = save_index(index, sample_data)

    assert (out / "index.json").is_file()
    assert (out / "composer-index.json").is_file()
    assert (out / "editions" / "mozart-k-9.json").is_file()

    loaded = load_index(sample_data)
    assert loaded.by_composer == index.by_composer
    assert loaded.catalog == index.catalog
    assert loaded.editions == index.editions


def test_persisted_layout(sample_data: Path) -> None:
    save_index(build_index(sample_data), sample_data)
    data = json.loads((sample_data / ".indexes" / "index.json").read_text())
    assert data["mozart"]["k"]["superseded"] == {"300i": {"id": "ef000001"}}
    assert data["mozart"]["k"]["current"]["545"] == {"id": "ef000002", "note": "Sonata facile"}
    assert load_edition_index(sample_data, "mozart", "k", "1") == {"300i": "ef000001", "545": "ef000002"}
    assert load_edition_index(sample_data, "mozart", "k", "5") is None


def test_load_index_missing(tmp_path: Path) -> None:
    with pytest.raises(DocumentError):
        load_index(tmp_path)


def test_staleness(sample_data: Path) -> None:
    assert index_is_stale(sample_data)

    save_index(build_index(sample_data), sample_data)
    assert not index_is_stale(sample_data)

    _touch_later(sample_data / "compositions" / "ab" / "000001.json")
    assert index_is_stale(sample_data)


def test_collection_change_makes_index_stale(sample_data: Path) -> None:
    save_index(build_index(sample_data), sample_data)
    _touch_later(sample_data / "collections" / "bach" / "wtc-1.json")
    assert index_is_stale(sample_data)


def test_get_or_build_index_caches(sample_data: Path, write_composition) -> None:
    index = get_or_build_index(sample_data)
    assert (sample_data / ".indexes" / "index.json").is_file()
    assert get_or_build_index(sample_data).catalog == index.catalog

    path = write_composition("ab000009", [{"composer": "beethoven", "catalog": [{"scheme": "op", "number": "111"}]}])
    _touch_later(path)
    rebuilt = get_or_build_index(sample_data)
    assert "111" in rebuilt.scheme_index("beethoven", "op").current


def test_get_or_build_index_rebuilds_corrupt_cache(sample_data: Path) -> None:
    get_or_build_index(sample_data)
    index_file = sample_data / ".indexes" / "index.json"
    index_file.write_text("[]")
    _touch_later(index_file)

    index = get_or_build_index(sample_data)
    assert "beethoven" in index.catalog


@pytest.mark.parametrize("field", ["current", "superseded"])
def test_scheme_index_rejects_non_object_maps(field: str) -> None:
    with pytest.raises(DocumentError):
        SchemeIndex.from_dict({field: [1]})


def test_get_or_build_index_rebuilds_malformed_scheme_map(sample_data: Path) -> None:
    get_or_build_index(sample_data)
    index_file = sample_data / ".indexes" / "index.json"
    index_file.write_text(json.dumps({"bach": {"bwv": {"current": [1]}}}))
    _touch_later(index_file)

    index = get_or_build_index(sample_data)
    assert "2/1" in index.scheme_index("beethoven", "op").current
