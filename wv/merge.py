"""Attribution merging.

A composition carries an ordered list of attribution entries, newest
consensus first. Merging folds them into one effective view; collection
references (`cf`) let an entry borrow composer and dates from a shared
collection record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterator

from .exceptions import DocumentError
from .models import AttributionEntry, CatalogEntry, Collection, Dates
from .store.loader import collection_path_from_id, load_collection

logger = logging.getLogger(__name__)


@dataclass
class MergedAttribution:
    """Effective attribution of a composition; derived, never persisted."""

    composer: str | None = None
    dates: Dates = field(default_factory=Dates)
    status: str | None = None
    catalog: list[CatalogEntry] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "composer": self.composer,
            "dates": {k: v for k, v in vars(self.dates).items() if v is not None},
            "status": self.status,
            "catalog": [
                {k: v for k, v in vars(c).items() if v is not None} for c in self.catalog
            ],
            "notes": list(self.notes),
        }


def merge_attribution(entries: list[AttributionEntry]) -> MergedAttribution:
    """Fold attribution entries in order.

    Status comes from the first entry only, since it describes the current
    consensus. Composer and each date field take the first non-empty value.
    Catalog lists are concatenated without deduplication; their order decides
    current versus superseded numbers downstream.
    """
    result = MergedAttribution()

    if entries:
        result.status = entries[0].status

    for entry in entries:
        if result.composer is None and entry.composer:
            result.composer = entry.composer
        if entry.dates is not None:
            result.dates.fill_from(entry.dates)
        if entry.catalog:
            result.catalog.extend(entry.catalog)
        if entry.note is not None:
            result.notes.append(entry.note)

    return result


def _collection_attribution(
    collection: Collection,
    collections_dir: Path,
    seen: set[str],
) -> AttributionEntry | None:
    if not collection.attribution:
        if collection.composer:
            return AttributionEntry(composer=collection.composer)
        return None

    expanded = _resolve(collection.attribution, collections_dir, seen)
    merged = merge_attribution(expanded)
    return AttributionEntry(
        composer=merged.composer,
        dates=merged.dates,
        status=merged.status,
        catalog=merged.catalog or None,
    )


def _load_collection_attribution(
    collections_dir: Path,
    collection_id: str,
    seen: set[str],
) -> AttributionEntry | None:
    if collection_id in seen:
        logger.debug(f"Collection reference cycle at {collection_id}")
        return None
    path = collection_path_from_id(collections_dir, collection_id)
    try:
        collection = load_collection(path)
    except DocumentError as e:
        logger.debug(f"Collection {collection_id} not resolved: {e}")
        return None
    return _collection_attribution(collection, collections_dir, seen | {collection_id})


def _resolve(
    entries: list[AttributionEntry],
    collections_dir: Path,
    seen: set[str],
) -> list[AttributionEntry]:
    expanded = []
    for entry in entries:
        if entry.cf is None:
            expanded.append(entry)
            continue

        delegated = _load_collection_attribution(collections_dir, entry.cf, seen)
        if delegated is None:
            expanded.append(entry)
            continue

        expanded.append(
            replace(
                entry,
                composer=entry.composer if entry.composer is not None else delegated.composer,
                dates=entry.dates if entry.dates is not None else delegated.dates,
            )
        )
    return expanded


def resolve_collection_refs(
    entries: list[AttributionEntry],
    collections_dir: Path,
) -> list[AttributionEntry]:
    """Fill composer and dates of `cf` entries from their collections.

    A missing or unparseable collection leaves the entry as it is.
    """
    return _resolve(entries, Path(collections_dir), set())


def merge_attribution_with_collections(
    entries: list[AttributionEntry],
    collections_dir: Path,
) -> MergedAttribution:
    return merge_attribution(resolve_collection_refs(entries, collections_dir))


def current_composer(entries: list[AttributionEntry]) -> str | None:
    return next((e.composer for e in entries if e.composer), None)


def all_catalog_entries(entries: list[AttributionEntry]) -> Iterator[CatalogEntry]:
    for entry in entries:
        yield from entry.catalog or []


def current_catalog_number(entries: list[AttributionEntry], scheme: str) -> str | None:
    """First number recorded under `scheme`, i.e. the current one."""
    return next((c.number for c in all_catalog_entries(entries) if c.scheme == scheme), None)


def current_catalog_number_for_edition(
    entries: list[AttributionEntry],
    scheme: str,
    edition: str,
) -> str | None:
    return next(
        (c.number for c in all_catalog_entries(entries) if c.scheme == scheme and c.edition == edition),
        None,
    )


def state_as_of(entries: list[AttributionEntry], date: str) -> list[AttributionEntry]:
    """Entries in effect at `date`.

    Plain string comparison on ISO-like dates, so "1950" <= "1950-06" holds.
    """
    return [e for e in entries if e.since is None or e.since <= date]
