"""Collections: named groups of catalog numbers under one scheme."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .catalog import normalize_catalog_number
from .exceptions import DocumentError
from .models import Collection
from .store.loader import COLLECTIONS_DIR, collection_path_from_id, load_collection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionRef:
    """A member of an expanded collection."""

    composer: str
    scheme: str
    number: str

    def __str__(self) -> str:
        return f"{self.composer} {self.scheme} {self.number}"


def _iter_collection_files(collections_dir: Path) -> Iterator[Path]:
    if not collections_dir.is_dir():
        return
    for entry in sorted(collections_dir.iterdir()):
        if entry.is_dir() and not entry.name.startswith("."):
            yield from sorted(p for p in entry.glob("*.json") if p.is_file())
        elif entry.suffix == ".json" and entry.is_file():
            yield entry


def iter_collections(data_dir: Path) -> Iterator[Collection]:
    """Yield every readable collection; unreadable files are logged and skipped."""
    for path in _iter_collection_files(Path(data_dir) / COLLECTIONS_DIR):
        try:
            yield load_collection(path)
        except DocumentError as e:
            logger.debug(f"Skipping collection: {e}")


def collection_composer(collection: Collection) -> str:
    """Composer of a collection: attribution, then the record, then the ID prefix."""
    for entry in collection.attribution:
        if entry.composer:
            return entry.composer
    if collection.composer:
        return collection.composer
    return collection.id.partition("-")[0]


def list_collections(data_dir: Path, composer: str | None = None) -> list[Collection]:
    """All collections ordered by ID, optionally limited to one composer."""
    collections = [
        c for c in iter_collections(data_dir)
        if composer is None or collection_composer(c) == composer
    ]
    return sorted(collections, key=lambda c: c.id)


def find_collections(data_dir: Path, scheme: str, number: str) -> list[str]:
    """IDs of the collections under `scheme` that list `number`."""
    wanted = normalize_catalog_number(number)
    return [
        c.id
        for c in list_collections(data_dir)
        if c.scheme == scheme and wanted in {normalize_catalog_number(n) for n in c.compositions}
    ]


def expand_collections(data_dir: Path, collection_ids: list[str]) -> list[CollectionRef]:
    """Expand collection IDs into (composer, scheme, number) references.

    Members keep the order they have in each collection; unknown IDs are skipped.
    """
    collections_dir = Path(data_dir) / COLLECTIONS_DIR
    refs: list[CollectionRef] = []
    for collection_id in collection_ids:
        path = collection_path_from_id(collections_dir, collection_id)
        if not path.exists():
            logger.warning(f"Unknown collection: {collection_id}")
            continue
        try:
            collection = load_collection(path)
        except DocumentError as e:
            logger.warning(f"Skipping collection {collection_id}: {e}")
            continue

        composer = collection_composer(collection)
        refs.extend(CollectionRef(composer, collection.scheme, n) for n in collection.compositions)
    return refs
