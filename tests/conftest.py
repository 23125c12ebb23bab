"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from wv.models import CatalogDefinition
from wv.store import collection_path_from_id, parse_catalog_definition, path_for_id

# Opus numbers: major, optional /minor, optional letter suffix. Groups compare
# the major number only, so "2" covers 2/1, 2/2, 2/3.
OP_DEFINITION: dict[str, Any] = {
    "name": "Opus",
    "pattern": r"^(\d+)(?:/(\d+))?([a-z])?$",
    "sort_keys": [
        {"group": 1, "type": "int"},
        {"group": 2, "type": "int"},
        {"group": 3, "type": "str"},
    ],
    "group_by": [1],
}

# Hoboken numbers: Roman group, colon, number, optional suffix.
HOB_DEFINITION: dict[str, Any] = {
    "name": "Hoboken",
    "pattern": r"^([ivxlcdm]+):(\d+)([a-z])?$",
    "sort_keys": [
        {"group": 1, "type": "roman"},
        {"group": 2, "type": "int"},
        {"group": 3, "type": "str"},
    ],
}


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def op_definition() -> CatalogDefinition:
    return parse_catalog_definition(OP_DEFINITION)


@pytest.fixture
def hob_definition() -> CatalogDefinition:
    return parse_catalog_definition(HOB_DEFINITION)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """An empty data root."""
    root = tmp_path / "data"
    for name in ("compositions", "collections", "composers", "catalogs"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def write_composition(data_dir: Path):
    def _write(composition_id: str, attribution: list[dict], form: str = "sonata", **fields: Any) -> Path:
        data = {"id": composition_id, "form": form, "attribution": attribution, **fields}
        return write_json(path_for_id(data_dir / "compositions", composition_id), data)

    return _write


@pytest.fixture
def write_collection(data_dir: Path):
    def _write(collection_id: str, scheme: str, compositions: list[str], **fields: Any) -> Path:
        data = {
            "id": collection_id,
            "title": fields.pop("title", {"en": collection_id}),
            "scheme": scheme,
            "compositions": compositions,
            **fields,
        }
        return write_json(collection_path_from_id(data_dir / "collections", collection_id), data)

    return _write


@pytest.fixture
def write_catalog(data_dir: Path):
    def _write(scheme: str, definition: dict[str, Any]) -> Path:
        return write_json(data_dir / "catalogs" / f"{scheme}.json", definition)

    return _write


@pytest.fixture
def write_composer(data_dir: Path):
    def _write(slug: str, **fields: Any) -> Path:
        data = {"id": slug, "name": {"full": slug.title(), "sort": slug.title()}, **fields}
        return write_json(data_dir / "composers" / f"{slug}.json", data)

    return _write


def _single(composer: str, scheme: str, number: str, **entry: Any) -> list[dict]:
    return [{"composer": composer, "catalog": [{"scheme": scheme, "number": number, **entry}]}]


@pytest.fixture
def sample_data(data_dir: Path, write_composition, write_collection, write_catalog) -> Path:
    """A small corpus covering groups, ranges, editions and collections.

    beethoven op: 2/1, 2/2, 2/3, 7, 10
    haydn hob: i:1 .. i:5, ii:3
    mozart k: 331 (was 300i in edition 1), 545 (edition 1, with a note)
    bach bwv: 846, 847, attributed through the collection bach-wtc-1
    """
    write_catalog("op", OP_DEFINITION)
    write_catalog("hob", HOB_DEFINITION)

    for i, number in enumerate(["2/1", "2/2", "2/3", "7", "10"], start=1):
        write_composition(f"ab00000{i}", _single("beethoven", "op", number), title={"en": f"Op. {number}"})

    for i, number in enumerate(["i:1", "i:2", "i:3", "i:4", "i:5", "ii:3"], start=1):
        write_composition(f"cd00000{i}", _single("haydn", "hob", number), form="symphony")

    write_composition(
        "ef000001",
        [
            {
                "composer": "mozart",
                "status": "certain",
                "catalog": [
                    {"scheme": "k", "number": "331", "edition": "9"},
                    {"scheme": "k", "number": "300i", "edition": "1"},
                ],
            }
        ],
        key="A major",
    )
    write_composition(
        "ef000002",
        _single("mozart", "k", "545", edition="1", note="Sonata facile"),
        key="C major",
    )

    write_collection(
        "bach-wtc-1",
        "bwv",
        ["846", "847"],
        title={"en": "The Well-Tempered Clavier, Book I", "de": "Das Wohltemperierte Klavier I"},
        attribution=[{"composer": "bach", "dates": {"composed": 1722}}],
    )
    for i, number in enumerate(["846", "847"], start=1):
        write_composition(
            f"0a00000{i}",
            [{"cf": "bach-wtc-1", "catalog": [{"scheme": "bwv", "number": number}]}],
            form="prelude and fugue",
        )

    return data_dir
