"""Cross-references to an external work database.

The database itself is a collaborator behind the XrefLookup protocol; this
module only orders batches and reports on the answers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .catalog import normalize_catalog_number, sort_numbers
from .models import CatalogDefinition


@dataclass(frozen=True)
class XrefResult:
    catalog_number: str
    external_id: str | None = None
    title: str | None = None

    @property
    def matched(self) -> bool:
        return self.external_id is not None


class XrefLookup(Protocol):
    def lookup(
        self,
        composer: str,
        scheme: str,
        number: str,
        definition: CatalogDefinition | None,
    ) -> XrefResult | None: ...


class MappingLookup:
    """XrefLookup over an in-memory {(composer, scheme, number): external_id} map."""

    def __init__(self, mapping: dict[tuple[str, str, str], str], titles: dict[str, str] | None = None):
        self._mapping = {
            (composer, scheme, normalize_catalog_number(number)): external_id
            for (composer, scheme, number), external_id in mapping.items()
        }
        self._titles = titles or {}

    def lookup(
        self,
        composer: str,
        scheme: str,
        number: str,
        definition: CatalogDefinition | None,
    ) -> XrefResult | None:
        external_id = self._mapping.get((composer, scheme, normalize_catalog_number(number)))
        if external_id is None:
            return None
        return XrefResult(number, external_id, self._titles.get(external_id))


def lookup_batch(
    lookup: XrefLookup,
    composer: str,
    scheme: str,
    numbers: list[str],
    definition: CatalogDefinition | None = None,
) -> list[XrefResult]:
    """One result per number, in scheme order.

    Numbers the collaborator does not know come back without an external ID.
    """
    ordered = sort_numbers([normalize_catalog_number(n) for n in numbers], definition)
    results = []
    for number in ordered:
        result = lookup.lookup(composer, scheme, number, definition)
        results.append(result if result is not None else XrefResult(number))
    return results


def check_duplicates(results: list[XrefResult]) -> dict[str, list[str]]:
    """External IDs claimed by more than one catalog number."""
    by_external: dict[str, list[str]] = {}
    for result in results:
        if result.external_id is not None:
            by_external.setdefault(result.external_id, []).append(result.catalog_number)
    return {ext: nums for ext, nums in by_external.items() if len(nums) > 1}


@dataclass
class XrefStats:
    matched: int = 0
    not_found: int = 0
    duplicates: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_results(cls, results: list[XrefResult]) -> XrefStats:
        matched = sum(1 for r in results if r.matched)
        return cls(
            matched=matched,
            not_found=len(results) - matched,
            duplicates=check_duplicates(results),
        )
