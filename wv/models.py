"""Data models for catalog documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# Attribution consensus levels
Status = Literal["certain", "probable", "doubtful", "spurious"]

STATUSES: tuple[str, ...] = ("certain", "probable", "doubtful", "spurious")

# Value types a sort key may declare
SortType = Literal["int", "roman", "str"]


@dataclass(frozen=True)
class SortKeySpec:
    """One typed field of a catalog number, addressed by capture group."""

    group: int  # 1-based capture group index in the scheme pattern
    type: str = "str"  # int, roman, str
    display: str | None = None


@dataclass(frozen=True)
class EditionInfo:
    year: int
    editor: str


@dataclass
class CatalogDefinition:
    """A numbering scheme, optionally scoped to one composer."""

    name: str
    description: str | None = None
    canonical_format: str | None = None
    pattern: str | None = None
    sort_keys: list[SortKeySpec] | None = None
    group_by: list[int] | None = None
    aliases: list[str] | None = None
    editions: dict[str, EditionInfo] | None = None

    @property
    def max_group(self) -> int:
        """Highest capture group referenced by the sort keys."""
        if not self.sort_keys:
            return 0
        return max(sk.group for sk in self.sort_keys)

    def grouping_indices(self) -> list[int]:
        """Capture groups compared when testing group membership.

        Defaults to every sort-key group except the most granular one.
        """
        if self.group_by is not None:
            return list(self.group_by)
        if not self.sort_keys:
            return []
        groups = [sk.group for sk in self.sort_keys]
        return groups[:-1] if len(groups) > 1 else groups


@dataclass
class Dates:
    composed: int | None = None
    published: int | None = None
    premiered: int | None = None
    revised: int | None = None

    def fill_from(self, other: Dates) -> None:
        """Set every field that is still empty from `other`."""
        if self.composed is None:
            self.composed = other.composed
        if self.published is None:
            self.published = other.published
        if self.premiered is None:
            self.premiered = other.premiered
        if self.revised is None:
            self.revised = other.revised


@dataclass
class CatalogEntry:
    """A number assigned to a work under one scheme."""

    scheme: str
    number: str
    edition: str | None = None
    since: str | None = None
    note: str | None = None


@dataclass
class AttributionEntry:
    """One historical claim of authorship and numbering."""

    composer: str | None = None
    cf: str | None = None  # collection reference
    dates: Dates | None = None
    status: str | None = None
    catalog: list[CatalogEntry] | None = None
    since: str | None = None
    note: str | None = None


@dataclass
class Composition:
    id: str
    form: str
    attribution: list[AttributionEntry] = field(default_factory=list)
    title: dict[str, str] | None = None
    key: str | None = None
    instrumentation: str | None = None
    movements: list[dict[str, Any]] | None = None
    sections: list[dict[str, Any]] | None = None
    xref: dict[str, str] | None = None


@dataclass
class Collection:
    id: str
    title: dict[str, str]
    scheme: str
    compositions: list[str] = field(default_factory=list)
    composer: str | None = None
    attribution: list[AttributionEntry] = field(default_factory=list)
    description: str | None = None
    expansion_pattern: dict[str, str] | None = None

    @property
    def display_title(self) -> str:
        """English title, else German, else any."""
        for lang in ("en", "de"):
            if lang in self.title:
                return self.title[lang]
        return next(iter(self.title.values()), "")


@dataclass(frozen=True)
class ComposerName:
    full: str
    sort: str


@dataclass
class Composer:
    id: str
    name: ComposerName
    default_scheme: str | None = None
    born: str | None = None
    died: str | None = None
    nationality: str | None = None
    catalogs: dict[str, CatalogDefinition] | None = None
    xref: dict[str, str] | None = None
