"""Sort-key algebra for catalog numbers.

A scheme's pattern decomposes a raw number ("2/1", "i:104", "300k") into
capture groups; the scheme's sort keys turn selected groups into typed
values. Keys compare lexicographically, which gives natural ordering
("2" < "2/1" < "2/10" < "10") and is the basis for grouping and ranges.

Malformed numbers never raise: they get a sentinel key that sorts after
every well-formed number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from pathlib import Path

from .definitions import load_catalog_def
from .models import CatalogDefinition

SENTINEL = 999_999_999

ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}


class SortKind(IntEnum):
    """Variant tags, declared in comparison order."""

    NONE_FIRST = 0
    INT = 1
    STR = 2
    NONE_LAST = 3


@total_ordering
@dataclass(frozen=True)
class SortValue:
    """One typed position of a sort key.

    NoneFirst marks a field absent from the number; NoneLast is only
    synthesized for inclusive range ceilings.
    """

    kind: SortKind
    value: int | str | None = None

    @classmethod
    def of_int(cls, value: int) -> SortValue:
        return cls(SortKind.INT, value)

    @classmethod
    def of_str(cls, value: str) -> SortValue:
        return cls(SortKind.STR, value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SortValue):
            return NotImplemented
        if self.kind != other.kind:
            return self.kind < other.kind
        if self.kind in (SortKind.INT, SortKind.STR):
            return self.value < other.value  # type: ignore[operator]
        return False

    def __repr__(self) -> str:
        if self.kind == SortKind.INT:
            return f"Int({self.value})"
        if self.kind == SortKind.STR:
            return f"Str({self.value!r})"
        return "NoneFirst" if self.kind == SortKind.NONE_FIRST else "NoneLast"


NONE_FIRST = SortValue(SortKind.NONE_FIRST)
NONE_LAST = SortValue(SortKind.NONE_LAST)


@dataclass(frozen=True)
class CapturedField:
    """A capture group of one parse; raw_text is None if it did not participate."""

    index: int
    raw_text: str | None

    @property
    def is_empty(self) -> bool:
        return not self.raw_text


def parse_roman(text: str) -> int:
    """Convert Roman numerals to an integer; 0 for any invalid character."""
    text = text.upper()
    if not text or any(c not in ROMAN_VALUES for c in text):
        return 0

    total = 0
    prev = 0
    for c in reversed(text):
        val = ROMAN_VALUES[c]
        if val < prev:
            total -= val
        else:
            total += val
        prev = val
    return total


def normalize_catalog_number(number: str) -> str:
    return number.lower()


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a scheme pattern case-insensitively; None if it is invalid."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def capture_fields(number: str, compiled: re.Pattern[str], max_group: int) -> list[CapturedField] | None:
    """Parse a number into fields 1..max_group, or None if it does not match."""
    m = compiled.search(number)
    if m is None:
        return None
    return [
        CapturedField(i, m.group(i) if i <= compiled.groups else None)
        for i in range(1, max_group + 1)
    ]


def fallback_key(number: str) -> list[SortValue]:
    return [SortValue.of_int(SENTINEL), SortValue.of_str(number)]


def is_fallback_key(key: list[SortValue]) -> bool:
    return bool(key) and key[0] == SortValue.of_int(SENTINEL)


def _typed_value(raw: str, sort_type: str) -> SortValue:
    if sort_type == "int":
        try:
            return SortValue.of_int(int(raw))
        except ValueError:
            return SortValue.of_int(0)
    if sort_type == "roman":
        return SortValue.of_int(parse_roman(raw))
    return SortValue.of_str(raw)


def _key_from_fields(number: str, fields: list[CapturedField], defn: CatalogDefinition) -> list[SortValue]:
    if defn.sort_keys is None:
        return [SortValue.of_str(number)]

    key = []
    for sk in defn.sort_keys:
        idx = sk.group - 1
        captured = fields[idx] if 0 <= idx < len(fields) else None
        if captured is None or captured.is_empty:
            key.append(NONE_FIRST)
        else:
            key.append(_typed_value(captured.raw_text, sk.type))
    return key


def _sort_key_compiled(number: str, compiled: re.Pattern[str], defn: CatalogDefinition) -> list[SortValue]:
    fields = capture_fields(number, compiled, defn.max_group)
    if fields is None:
        return fallback_key(number)
    return _key_from_fields(number, fields, defn)


def sort_key(number: str, defn: CatalogDefinition) -> list[SortValue]:
    """Typed, totally ordered key for a raw catalog number."""
    if defn.pattern is None:
        return [SortValue.of_str(number)]
    compiled = compile_pattern(defn.pattern)
    if compiled is None:
        return fallback_key(number)
    return _sort_key_compiled(number, compiled, defn)


def sort_numbers(numbers: list[str], defn: CatalogDefinition | None = None) -> list[str]:
    """Return numbers in scheme order (plain string order without a pattern).

    The sort is stable, so numbers with equal keys keep their input order.
    """
    if defn is None or defn.pattern is None:
        return sorted(numbers)
    compiled = compile_pattern(defn.pattern)
    if compiled is None:
        return sorted(numbers)
    return sorted(numbers, key=lambda n: _sort_key_compiled(n, compiled, defn))


def sort_numbers_by_scheme(
    numbers: list[str],
    data_dir: Path,
    scheme: str,
    composer: str | None = None,
) -> list[str]:
    return sort_numbers(numbers, load_catalog_def(data_dir, scheme, composer))


def matches_group(number: str, group: str, defn: CatalogDefinition | None = None) -> bool:
    """True if `number` belongs to the family named by `group`.

    Without a usable pattern this is a prefix test. With one, both strings
    are parsed and the grouping fields must agree: equal where both are
    present, or absent in both.
    """
    if defn is None or defn.pattern is None:
        return number.startswith(group)
    compiled = compile_pattern(defn.pattern)
    if compiled is None:
        return number.startswith(group)

    max_group = defn.max_group
    num_fields = capture_fields(number, compiled, max_group)
    if num_fields is None:
        return False
    grp_fields = capture_fields(group, compiled, max_group)
    if grp_fields is None:
        return number.startswith(group)

    for idx in defn.grouping_indices():
        if idx < 1 or idx > max_group:
            continue
        num_val = num_fields[idx - 1].raw_text
        grp_val = grp_fields[idx - 1].raw_text
        if num_val is None and grp_val is None:
            continue
        if num_val is None or grp_val is None or num_val != grp_val:
            return False
    return True


def looks_like_group(number: str, defn: CatalogDefinition) -> bool:
    """True if the number leaves the scheme's most granular fields unset."""
    key = sort_key(number, defn)
    if is_fallback_key(key):
        return False
    return bool(key) and key[-1] == NONE_FIRST


def inclusive_ceiling(key: list[SortValue]) -> list[SortValue]:
    """Rewrite trailing NoneFirst fields to NoneLast.

    A range ending at "i:4" then covers every sub-entry of "i:4".
    """
    result = list(key)
    for i in range(len(result) - 1, -1, -1):
        if result[i] != NONE_FIRST:
            break
        result[i] = NONE_LAST
    return result
