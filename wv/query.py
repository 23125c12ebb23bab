"""Query builder over a built index.

Resolution runs most-specific first:

1. composer + scheme + edition + number: the edition's cumulative map.
2. composer + scheme + number: current numbers, then (unless strict)
   superseded ones with a back-reference to the current number. A miss
   reinterprets the number as a group.
3. composer + scheme: the scheme listing, optionally grouped, ranged and
   sorted with the sort-key algebra.
4. composer alone: every composition filed under the composer.

Queries are read-only; nothing here mutates the index.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from .catalog import inclusive_ceiling, matches_group, normalize_catalog_number, sort_key, sort_numbers
from .definitions import DefinitionCache
from .exceptions import DocumentError, InvalidIdError
from .models import CatalogDefinition, Composition
from .store.loader import COMPOSITIONS_DIR, load_composition, path_for_id

if TYPE_CHECKING:
    from .index import Index, IndexEntry, SchemeIndex


@dataclass(frozen=True)
class QueryResult:
    id: str
    number: str | None = None
    superseded: bool = False
    current_number: str | None = None  # set only for superseded hits
    note: str | None = None


@dataclass(frozen=True)
class _QuerySpec:
    composer: str | None = None
    scheme: str | None = None
    edition: str | None = None
    number: str | None = None
    group: str | None = None
    range_start: str | None = None
    range_end: str | None = None
    sorted: bool = False
    strict: bool = False

    @property
    def is_filtered(self) -> bool:
        return self.group is not None or self.range_start is not None


class QueryBuilder:
    """Composable query; setters return the builder for chaining."""

    def __init__(
        self,
        index: Index,
        spec: _QuerySpec | None = None,
        definitions: DefinitionCache | None = None,
    ):
        self._index = index
        self._spec = spec or _QuerySpec()
        self._definitions = definitions

    def _set(self, **changes) -> QueryBuilder:
        self._spec = replace(self._spec, **changes)
        return self

    def composer(self, composer: str) -> QueryBuilder:
        return self._set(composer=composer)

    def scheme(self, scheme: str) -> QueryBuilder:
        return self._set(scheme=scheme)

    def edition(self, edition: str) -> QueryBuilder:
        return self._set(edition=edition)

    def number(self, number: str) -> QueryBuilder:
        return self._set(number=normalize_catalog_number(number))

    def group(self, group: str) -> QueryBuilder:
        return self._set(group=normalize_catalog_number(group))

    def range(self, start: str, end: str) -> QueryBuilder:
        return self._set(
            range_start=normalize_catalog_number(start),
            range_end=normalize_catalog_number(end),
        )

    def sorted(self, flag: bool = True) -> QueryBuilder:
        return self._set(sorted=flag)

    def strict(self, flag: bool = True) -> QueryBuilder:
        return self._set(strict=flag)

    def data_dir(self, data_dir: Path) -> QueryBuilder:
        """Resolve catalog definitions from this data root."""
        self._definitions = DefinitionCache(data_dir)
        return self

    def definitions(self, cache: DefinitionCache) -> QueryBuilder:
        """Share an existing definition cache across queries."""
        self._definitions = cache
        return self

    # Terminal operations

    def fetch_one(self) -> str | None:
        """ID for an exact composer/scheme/number lookup; no group fallback."""
        hit = self._lookup_number()
        return hit.id if hit else None

    def fetch(self) -> list[QueryResult]:
        spec = self._spec
        if spec.composer is None:
            return []

        if spec.scheme is None:
            if spec.number is not None:
                return []
            return self._fetch_by_composer(spec.composer)

        if spec.number is not None:
            hit = self._lookup_number()
            if hit is not None:
                return [hit]
            as_group = replace(spec, number=None, group=spec.number)
            return QueryBuilder(self._index, as_group, self._definitions)._fetch_by_scheme()

        return self._fetch_by_scheme()

    def count(self) -> int:
        return len(self.fetch())

    def exists(self) -> bool:
        return self.fetch_one() is not None

    def fetch_compositions(self) -> list[Composition]:
        """Load the documents behind fetch(); requires a data root."""
        if self._definitions is None:
            return []
        compositions_dir = self._definitions.data_dir / COMPOSITIONS_DIR

        compositions = []
        for result in self.fetch():
            try:
                compositions.append(load_composition(path_for_id(compositions_dir, result.id)))
            except (DocumentError, InvalidIdError):
                continue
        return compositions

    # Resolution

    def _definition(self) -> CatalogDefinition | None:
        if self._definitions is None or self._spec.scheme is None:
            return None
        return self._definitions.get(self._spec.scheme, self._spec.composer)

    def _scheme_index(self) -> SchemeIndex | None:
        spec = self._spec
        if spec.composer is None or spec.scheme is None:
            return None
        return self._index.scheme_index(spec.composer, spec.scheme)

    def _lookup_number(self) -> QueryResult | None:
        spec = self._spec
        if spec.composer is None or spec.scheme is None or spec.number is None:
            return None
        number = spec.number

        if spec.edition is not None:
            numbers = self._index.edition_map(spec.composer, spec.scheme, spec.edition)
            if numbers is None or number not in numbers:
                return None
            return QueryResult(id=numbers[number], number=number)

        scheme_index = self._scheme_index()
        if scheme_index is None:
            return None

        entry = scheme_index.current.get(number)
        if entry is not None:
            return QueryResult(id=entry.id, number=number, note=entry.note)

        if not spec.strict:
            entry = scheme_index.superseded.get(number)
            if entry is not None:
                return QueryResult(
                    id=entry.id,
                    number=number,
                    superseded=True,
                    current_number=scheme_index.current_number_for(entry.id),
                    note=entry.note,
                )

        return None

    def _fetch_by_composer(self, composer: str) -> list[QueryResult]:
        return [QueryResult(id=cid) for cid in self._index.by_composer.get(composer, [])]

    def _candidates(self) -> dict[str, tuple[IndexEntry, bool]] | None:
        """number -> (entry, superseded) for the scheme or edition listing."""
        from .index import IndexEntry

        spec = self._spec
        if spec.edition is not None:
            numbers = self._index.edition_map(spec.composer, spec.scheme, spec.edition)
            if numbers is None:
                return None
            return {n: (IndexEntry(cid), False) for n, cid in numbers.items()}

        scheme_index = self._scheme_index()
        if scheme_index is None:
            return None

        rows = {n: (e, False) for n, e in scheme_index.current.items()}
        # Unfiltered listings show history too; grouped, ranged or strict ones do not
        if not spec.is_filtered and not spec.strict:
            for n, e in scheme_index.superseded.items():
                rows.setdefault(n, (e, True))
        return rows

    def _fetch_by_scheme(self) -> list[QueryResult]:
        spec = self._spec
        rows = self._candidates()
        if rows is None:
            return []

        defn = self._definition()
        keys = list(rows)

        if spec.sorted or spec.is_filtered:
            keys = sort_numbers(keys, defn)

        if spec.group is not None:
            keys = [k for k in keys if matches_group(k, spec.group, defn)]

        if spec.range_start is not None and spec.range_end is not None:
            keys = _within_range(keys, spec.range_start, spec.range_end, defn)

        scheme_index = self._scheme_index()
        results = []
        for number in keys:
            entry, superseded = rows[number]
            current_number = None
            if superseded and scheme_index is not None:
                current_number = scheme_index.current_number_for(entry.id)
            results.append(
                QueryResult(
                    id=entry.id,
                    number=number,
                    superseded=superseded,
                    current_number=current_number,
                    note=entry.note,
                )
            )
        return results


def _within_range(keys: list[str], start: str, end: str, defn: CatalogDefinition | None) -> list[str]:
    if defn is None:
        return [k for k in keys if start <= k <= end]

    start_key = sort_key(start, defn)
    ceiling = inclusive_ceiling(sort_key(end, defn))
    return [k for k in keys if start_key <= sort_key(k, defn) <= ceiling]
