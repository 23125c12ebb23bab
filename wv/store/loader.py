"""Document loading and path layout of the data root."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterator

from ..exceptions import DocumentError, InvalidIdError
from ..models import Collection, Composer, Composition
from .parser import parse_collection, parse_composer, parse_composition

COMPOSITIONS_DIR = "compositions"
COLLECTIONS_DIR = "collections"
COMPOSERS_DIR = "composers"
CATALOGS_DIR = "catalogs"
INDEXES_DIR = ".indexes"

COMPOSITION_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}$")


def is_composition_id(value: str) -> bool:
    """True for an 8-character hexadecimal composition ID."""
    return bool(COMPOSITION_ID_PATTERN.match(value))


def load_json(path: Path) -> Any:
    """Read a UTF-8 JSON document, wrapping I/O and syntax errors."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"cannot read file: {e}", path) from e
    except UnicodeDecodeError as e:
        raise DocumentError(f"not valid UTF-8: {e}", path) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"invalid JSON: {e}", path) from e


def _load(path: Path, parse):
    data = load_json(path)
    try:
        return parse(data)
    except DocumentError as e:
        if e.path is None:
            raise DocumentError(str(e), path) from e
        raise


def load_composition(path: Path) -> Composition:
    return _load(Path(path), parse_composition)


def load_collection(path: Path) -> Collection:
    return _load(Path(path), parse_collection)


def load_composer(path: Path) -> Composer:
    return _load(Path(path), parse_composer)


def path_for_id(compositions_dir: Path, composition_id: str) -> Path:
    """Map an ID to its sharded path: ab/cd1234.json for abcd1234."""
    if len(composition_id) != 8:
        raise InvalidIdError(f"ID must be 8 characters: {composition_id}")
    prefix, suffix = composition_id[:2], composition_id[2:]
    return Path(compositions_dir) / prefix / f"{suffix}.json"


def extract_id_from_path(path: Path) -> str:
    """Inverse of path_for_id: shard directory name plus file stem."""
    path = Path(path)
    if not path.stem or not path.parent.name:
        raise InvalidIdError(f"Invalid composition path: {path}")
    return f"{path.parent.name}{path.stem}"


def collection_path_from_id(collections_dir: Path, collection_id: str) -> Path:
    """Map "bach-wtc-1" to collections/bach/wtc-1.json.

    IDs without a composer prefix live directly in the collections directory.
    """
    collections_dir = Path(collections_dir)
    composer, sep, name = collection_id.partition("-")
    if sep:
        return collections_dir / composer / f"{name}.json"
    return collections_dir / f"{collection_id}.json"


def iter_composition_files(compositions_dir: Path) -> Iterator[Path]:
    """Yield composition files shard by shard, in sorted order.

    Only the two-level layout is scanned; stray files at the top level and
    non-JSON files inside shards are ignored.
    """
    compositions_dir = Path(compositions_dir)
    for shard in sorted(compositions_dir.iterdir()):
        if not shard.is_dir() or shard.name.startswith("."):
            continue
        try:
            files = sorted(shard.iterdir())
        except OSError:
            continue
        for path in files:
            if path.suffix == ".json" and path.is_file():
                yield path
