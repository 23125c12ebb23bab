"""Index construction, persistence and staleness.

The index is derived data: it is rebuilt from the composition tree in one
pass and can be cached under <root>/.indexes. There is no incremental
update; a stale cache is replaced by a full rebuild, because the cumulative
edition maps are only correct over a consistent full-corpus pass.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .catalog import normalize_catalog_number
from .exceptions import DocumentError
from .merge import merge_attribution, resolve_collection_refs
from .models import Composition
from .store.loader import (
    COLLECTIONS_DIR,
    COMPOSITIONS_DIR,
    INDEXES_DIR,
    iter_composition_files,
    load_composition,
    load_json,
)

if TYPE_CHECKING:
    from .query import QueryBuilder

logger = logging.getLogger(__name__)

INDEX_FILE = "index.json"
COMPOSER_INDEX_FILE = "composer-index.json"
EDITIONS_DIR = "editions"


@dataclass(frozen=True)
class IndexEntry:
    id: str
    note: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"id": self.id}
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: Any) -> IndexEntry:
        if isinstance(data, str):
            return cls(id=data)
        if not isinstance(data, dict) or "id" not in data:
            raise DocumentError(f"invalid index entry: {data!r}")
        return cls(id=str(data["id"]), note=data.get("note"))


@dataclass
class SchemeIndex:
    """Numbers of one (composer, scheme): current and superseded."""

    current: dict[str, IndexEntry] = field(default_factory=dict)
    superseded: dict[str, IndexEntry] = field(default_factory=dict)

    def add_current(self, number: str, entry: IndexEntry) -> None:
        self.current[number] = entry
        # A number that is current anywhere is never listed as superseded
        self.superseded.pop(number, None)

    def add_superseded(self, number: str, entry: IndexEntry) -> None:
        if number in self.current:
            return
        self.superseded.setdefault(number, entry)

    def current_number_for(self, composition_id: str) -> str | None:
        """The current number backed by the same composition, if any."""
        for number, entry in self.current.items():
            if entry.id == composition_id:
                return number
        return None

    def __len__(self) -> int:
        return len(self.current) + len(self.superseded)

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        return {
            "current": {n: e.to_dict() for n, e in self.current.items()},
            "superseded": {n: e.to_dict() for n, e in self.superseded.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> SchemeIndex:
        if not isinstance(data, dict):
            raise DocumentError("invalid scheme index")
        return cls(current=_entry_map(data, "current"), superseded=_entry_map(data, "superseded"))


def _entry_map(data: dict[str, Any], key: str) -> dict[str, IndexEntry]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise DocumentError(f"scheme index '{key}' must be an object")
    return {str(n): IndexEntry.from_dict(e) for n, e in raw.items()}


def edition_key(composer: str, scheme: str) -> str:
    return f"{composer}-{scheme}"


def edition_sort_key(label: str) -> tuple[int, int, str]:
    """Integer labels in numeric order, anything else after them."""
    try:
        return (0, int(label), "")
    except ValueError:
        return (1, 0, label)


@dataclass
class Index:
    """Lookup tables over all compositions.

    by_composer lists IDs in ascending ID order (the scan walks shards and
    files sorted). editions maps "composer-scheme" to edition label to a
    cumulative number -> ID map.
    """

    by_composer: dict[str, list[str]] = field(default_factory=dict)
    catalog: dict[str, dict[str, SchemeIndex]] = field(default_factory=dict)
    editions: dict[str, dict[str, dict[str, str]]] = field(default_factory=dict)

    def scheme_index(self, composer: str, scheme: str) -> SchemeIndex | None:
        return self.catalog.get(composer, {}).get(scheme)

    def edition_map(self, composer: str, scheme: str, edition: str) -> dict[str, str] | None:
        return self.editions.get(edition_key(composer, scheme), {}).get(edition)

    @property
    def composition_count(self) -> int:
        return sum(len(ids) for ids in self.by_composer.values())

    @property
    def catalog_entry_count(self) -> int:
        return sum(len(si) for schemes in self.catalog.values() for si in schemes.values())

    def query(self) -> QueryBuilder:
        from .query import QueryBuilder

        return QueryBuilder(self)


@dataclass(frozen=True)
class _EditionRecord:
    composition_id: str
    edition: str
    number: str


def _index_composition(
    index: Index,
    composition: Composition,
    collections_dir: Path,
    pending: dict[tuple[str, str], list[_EditionRecord]],
) -> None:
    entries = resolve_collection_refs(composition.attribution, collections_dir)
    merged = merge_attribution(entries)

    registered: set[str] = set()
    seen_schemes: set[tuple[str, str]] = set()

    for entry in entries:
        # Anonymous entries file their numbers under the effective composer
        composer = entry.composer or merged.composer
        if not composer:
            continue

        if composer not in registered:
            registered.add(composer)
            index.by_composer.setdefault(composer, []).append(composition.id)

        for cat in entry.catalog or []:
            number = normalize_catalog_number(cat.number)
            scheme_index = index.catalog.setdefault(composer, {}).setdefault(cat.scheme, SchemeIndex())
            item = IndexEntry(composition.id, cat.note)

            if (composer, cat.scheme) in seen_schemes:
                scheme_index.add_superseded(number, item)
            else:
                seen_schemes.add((composer, cat.scheme))
                scheme_index.add_current(number, item)

            if cat.edition is not None:
                pending[(composer, cat.scheme)].append(
                    _EditionRecord(composition.id, cat.edition, number)
                )


def _build_edition_maps(records: list[_EditionRecord]) -> dict[str, dict[str, str]]:
    """Cumulative number maps for every edition label seen.

    Each composition contributes the number recorded at its highest edition
    label not above the target; compositions first numbered later are absent.
    """
    labels = sorted({r.edition for r in records}, key=edition_sort_key)

    by_id: dict[str, list[_EditionRecord]] = {}
    for record in records:
        by_id.setdefault(record.composition_id, []).append(record)

    maps: dict[str, dict[str, str]] = {}
    for label in labels:
        target = edition_sort_key(label)
        numbers: dict[str, str] = {}
        for composition_id, recs in by_id.items():
            best = None
            for rec in recs:
                rank = edition_sort_key(rec.edition)
                if rank <= target and (best is None or rank > best[0]):
                    best = (rank, rec.number)
            if best is not None:
                numbers[best[1]] = composition_id
        maps[label] = numbers
    return maps


def build_index(data_dir: Path) -> Index:
    """Scan every composition once and build all lookup tables.

    Documents that cannot be read or parsed are skipped; a missing
    compositions directory yields an empty index.
    """
    data_dir = Path(data_dir)
    compositions_dir = data_dir / COMPOSITIONS_DIR
    collections_dir = data_dir / COLLECTIONS_DIR

    index = Index()
    if not compositions_dir.is_dir():
        return index

    pending: dict[tuple[str, str], list[_EditionRecord]] = defaultdict(list)

    for path in iter_composition_files(compositions_dir):
        try:
            composition = load_composition(path)
        except DocumentError as e:
            logger.debug(f"Skipping {path}: {e}")
            continue
        _index_composition(index, composition, collections_dir, pending)

    for (composer, scheme), records in pending.items():
        index.editions[edition_key(composer, scheme)] = _build_edition_maps(records)

    logger.debug(
        f"Indexed {index.composition_count} compositions, "
        f"{index.catalog_entry_count} catalog entries"
    )
    return index


def _write_json(data: Any, path: Path) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def write_index(index: Index, output_path: Path) -> None:
    data = {
        composer: {scheme: si.to_dict() for scheme, si in schemes.items()}
        for composer, schemes in index.catalog.items()
    }
    _write_json(data, Path(output_path))


def write_composer_index(index: Index, output_path: Path) -> None:
    _write_json(index.by_composer, Path(output_path))


def write_edition_indexes(index: Index, output_dir: Path) -> None:
    """One file per (composer, scheme, edition); previous files are replaced."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    for old in output_dir.glob("*.json"):
        old.unlink()

    for key, editions in index.editions.items():
        for edition, numbers in editions.items():
            _write_json(numbers, output_dir / f"{key}-{edition}.json")


def indexes_dir(data_dir: Path) -> Path:
    return Path(data_dir) / INDEXES_DIR


def save_index(index: Index, data_dir: Path) -> Path:
    """Persist all index files; index.json is written last so its mtime is newest."""
    out = indexes_dir(data_dir)
    out.mkdir(parents=True, exist_ok=True)
    write_edition_indexes(index, out / EDITIONS_DIR)
    write_composer_index(index, out / COMPOSER_INDEX_FILE)
    write_index(index, out / INDEX_FILE)
    return out


def _read_edition_file(path: Path) -> dict[str, str]:
    data = load_json(path)
    if not isinstance(data, dict):
        raise DocumentError("edition index must be an object", path)
    return {str(n): str(i) for n, i in data.items()}


def load_edition_index(
    data_dir: Path,
    composer: str,
    scheme: str,
    edition: str,
) -> dict[str, str] | None:
    path = indexes_dir(data_dir) / EDITIONS_DIR / f"{edition_key(composer, scheme)}-{edition}.json"
    if not path.exists():
        return None
    return _read_edition_file(path)


def load_index(data_dir: Path) -> Index:
    """Read a persisted index.

    Raises:
        DocumentError: if index.json or composer-index.json is missing or invalid
    """
    out = indexes_dir(data_dir)

    raw_catalog = load_json(out / INDEX_FILE)
    raw_composers = load_json(out / COMPOSER_INDEX_FILE)
    if not isinstance(raw_catalog, dict) or not isinstance(raw_composers, dict):
        raise DocumentError("index files must contain objects", out)

    index = Index()
    for composer, schemes in raw_catalog.items():
        if not isinstance(schemes, dict):
            raise DocumentError(f"invalid schemes for {composer}", out / INDEX_FILE)
        index.catalog[composer] = {s: SchemeIndex.from_dict(si) for s, si in schemes.items()}

    for composer, ids in raw_composers.items():
        if not isinstance(ids, list):
            raise DocumentError(f"invalid ID list for {composer}", out / COMPOSER_INDEX_FILE)
        index.by_composer[composer] = [str(i) for i in ids]

    editions_dir = out / EDITIONS_DIR
    if editions_dir.is_dir():
        for path in sorted(editions_dir.glob("*.json")):
            key, sep, edition = path.stem.rpartition("-")
            if not sep:
                continue
            index.editions.setdefault(key, {})[edition] = _read_edition_file(path)
        for key, editions in index.editions.items():
            index.editions[key] = dict(sorted(editions.items(), key=lambda kv: edition_sort_key(kv[0])))

    return index


def _newest_mtime(root: Path) -> float:
    newest = root.stat().st_mtime
    for path in root.rglob("*"):
        newest = max(newest, path.stat().st_mtime)
    return newest


def index_is_stale(data_dir: Path) -> bool:
    """True if any document is newer than the persisted index.

    Best effort: a concurrent writer can still race the check, and any stat
    failure counts as stale.
    """
    data_dir = Path(data_dir)
    try:
        index_mtime = (indexes_dir(data_dir) / INDEX_FILE).stat().st_mtime
        for name in (COMPOSITIONS_DIR, COLLECTIONS_DIR):
            root = data_dir / name
            if root.exists() and _newest_mtime(root) > index_mtime:
                return True
    except OSError:
        return True
    return False


def get_or_build_index(data_dir: Path) -> Index:
    """Reuse the cached index when it is fresh, otherwise rebuild and cache it."""
    data_dir = Path(data_dir)
    if not index_is_stale(data_dir):
        try:
            return load_index(data_dir)
        except DocumentError as e:
            logger.debug(f"Cached index unusable, rebuilding: {e}")

    index = build_index(data_dir)
    try:
        save_index(index, data_dir)
    except OSError as e:
        logger.warning(f"Could not write index cache: {e}")
    return index
