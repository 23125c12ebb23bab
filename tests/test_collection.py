"""Tests for collection listing, lookup and expansion."""

from __future__ import annotations

from pathlib import Path

from wv.collection import CollectionRef, collection_composer, expand_collections, find_collections, list_collections
from wv.models import Collection


def test_list_collections(data_dir: Path, write_collection) -> None:
    write_collection("mozart-haffner", "k", ["250", "385"])
    write_collection("bach-wtc-2", "bwv", ["870"])
    write_collection("bach-wtc-1", "bwv", ["846", "847"])
    (data_dir / "collections" / "bach" / "broken.json").write_text("{")

    assert [c.id for c in list_collections(data_dir)] == ["bach-wtc-1", "bach-wtc-2", "mozart-haffner"]
    assert [c.id for c in list_collections(data_dir, "mozart")] == ["mozart-haffner"]


def test_list_collections_without_directory(tmp_path: Path) -> None:
    assert list_collections(tmp_path) == []


def test_find_collections(data_dir: Path, write_collection) -> None:
    write_collection("bach-wtc-1", "bwv", ["846", "847"])
    write_collection("bach-preludes", "bwv", ["846", "933"])
    write_collection("mozart-846", "k", ["846"])

    assert find_collections(data_dir, "bwv", "846") == ["bach-preludes", "bach-wtc-1"]
    assert find_collections(data_dir, "bwv", "999") == []


def test_find_collections_ignores_case(data_dir: Path, write_collection) -> None:
    write_collection("haydn-paris", "hob", ["I:82", "I:83"])
    assert find_collections(data_dir, "hob", "i:82") == ["haydn-paris"]


def test_collection_composer_resolution() -> None:
    assert collection_composer(Collection(id="x-y", title={}, scheme="op", composer="b")) == "b"
    assert collection_composer(Collection(id="bach-wtc-1", title={}, scheme="bwv")) == "bach"


def test_expand_collections(data_dir: Path, write_collection) -> None:
    write_collection("bach-wtc-1", "bwv", ["846", "847"])
    write_collection("anon-set", "op", ["1"], attribution=[{"composer": "pleyel"}], composer="haydn")

    refs = expand_collections(data_dir, ["bach-wtc-1", "missing-one", "anon-set"])
    assert refs == [
        CollectionRef("bach", "bwv", "846"),
        CollectionRef("bach", "bwv", "847"),
        CollectionRef("pleyel", "op", "1"),
    ]
    assert str(refs[0]) == "bach bwv 846"
