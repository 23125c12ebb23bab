"""Conversion of raw JSON records into typed models.

Records are data, validation is code: each parser checks the fields it needs
and raises DocumentError for anything structurally wrong.
"""

from __future__ import annotations

import re
from typing import Any

from ..exceptions import DocumentError
from ..models import (
    STATUSES,
    AttributionEntry,
    CatalogDefinition,
    CatalogEntry,
    Collection,
    Composer,
    ComposerName,
    Composition,
    Dates,
    EditionInfo,
    SortKeySpec,
)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    if key not in data:
        raise DocumentError(f"{kind} is missing required field '{key}'")
    return data[key]


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DocumentError(f"field '{key}' must be a string")
    return value


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass but never a valid year
    if isinstance(value, bool) or not isinstance(value, int):
        raise DocumentError(f"field '{key}' must be an integer")
    return value


def _int_value(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DocumentError(f"{what} must be an integer")
    return value


def _str_map(value: Any, key: str) -> dict[str, str] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DocumentError(f"field '{key}' must be an object")
    return {str(k): str(v) for k, v in value.items()}


def _list_of(value: Any, key: str) -> list[Any]:
    if not isinstance(value, list):
        raise DocumentError(f"field '{key}' must be a list")
    return value


def parse_dates(data: Any) -> Dates:
    data = _coerce_dict(data)
    return Dates(
        composed=_optional_int(data, "composed"),
        published=_optional_int(data, "published"),
        premiered=_optional_int(data, "premiered"),
        revised=_optional_int(data, "revised"),
    )


def parse_catalog_entry(data: Any) -> CatalogEntry:
    if not isinstance(data, dict):
        raise DocumentError("catalog entry must be an object")
    scheme = _require(data, "scheme", "catalog entry")
    number = _require(data, "number", "catalog entry")
    return CatalogEntry(
        scheme=str(scheme),
        number=str(number),
        edition=None if data.get("edition") is None else str(data["edition"]),
        since=None if data.get("since") is None else str(data["since"]),
        note=_optional_str(data, "note"),
    )


def parse_attribution_entry(data: Any) -> AttributionEntry:
    if not isinstance(data, dict):
        raise DocumentError("attribution entry must be an object")

    status = _optional_str(data, "status")
    if status is not None and status not in STATUSES:
        raise DocumentError(f"unknown attribution status '{status}'")

    catalog = None
    if data.get("catalog") is not None:
        catalog = [parse_catalog_entry(c) for c in _list_of(data["catalog"], "catalog")]

    return AttributionEntry(
        composer=_optional_str(data, "composer"),
        cf=_optional_str(data, "cf"),
        dates=parse_dates(data["dates"]) if data.get("dates") is not None else None,
        status=status,
        catalog=catalog,
        since=None if data.get("since") is None else str(data["since"]),
        note=_optional_str(data, "note"),
    )


def parse_attribution(value: Any) -> list[AttributionEntry]:
    return [parse_attribution_entry(e) for e in _list_of(value, "attribution")]


def parse_composition(data: Any) -> Composition:
    if not isinstance(data, dict):
        raise DocumentError("composition must be an object")

    movements = data.get("movements")
    sections = data.get("sections")

    return Composition(
        id=str(_require(data, "id", "composition")),
        form=str(_require(data, "form", "composition")),
        attribution=parse_attribution(_require(data, "attribution", "composition")),
        title=_str_map(data.get("title"), "title"),
        key=_optional_str(data, "key"),
        instrumentation=_optional_str(data, "instrumentation"),
        movements=_list_of(movements, "movements") if movements is not None else None,
        sections=_list_of(sections, "sections") if sections is not None else None,
        xref=_str_map(data.get("xref"), "xref"),
    )


def parse_collection(data: Any) -> Collection:
    if not isinstance(data, dict):
        raise DocumentError("collection must be an object")

    title = _str_map(_require(data, "title", "collection"), "title") or {}
    members = _list_of(_require(data, "compositions", "collection"), "compositions")

    return Collection(
        id=str(_require(data, "id", "collection")),
        title=title,
        scheme=str(_require(data, "scheme", "collection")),
        compositions=[str(m) for m in members],
        composer=_optional_str(data, "composer"),
        attribution=parse_attribution(data.get("attribution") or []),
        description=_optional_str(data, "description"),
        expansion_pattern=_str_map(data.get("expansion_pattern"), "expansion_pattern"),
    )


def parse_sort_key_spec(data: Any) -> SortKeySpec:
    if not isinstance(data, dict):
        raise DocumentError("sort key must be an object")
    group = _require(data, "group", "sort key")
    if isinstance(group, bool) or not isinstance(group, int):
        raise DocumentError("sort key 'group' must be an integer")
    return SortKeySpec(
        group=group,
        type=str(_require(data, "type", "sort key")),
        display=_optional_str(data, "display"),
    )


def parse_catalog_definition(data: Any) -> CatalogDefinition:
    """Parse a catalog definition.

    Invariant: sort_keys reference capture groups that exist in the pattern,
    and group_by, when present, is a subset of the sort-key groups. A
    definition that breaks it is rejected here rather than producing
    inconsistent keys later.
    """
    if not isinstance(data, dict):
        raise DocumentError("catalog definition must be an object")

    sort_keys = None
    if data.get("sort_keys") is not None:
        sort_keys = [parse_sort_key_spec(sk) for sk in _list_of(data["sort_keys"], "sort_keys")]

    group_by = None
    if data.get("group_by") is not None:
        group_by = [_int_value(g, "group_by entry") for g in _list_of(data["group_by"], "group_by")]
        if sort_keys is not None:
            known = {sk.group for sk in sort_keys}
            unknown = [g for g in group_by if g not in known]
            if unknown:
                raise DocumentError(f"group_by references groups {unknown} that are not sort keys")

    aliases = None
    if data.get("aliases") is not None:
        aliases = [str(a) for a in _list_of(data["aliases"], "aliases")]

    editions = None
    if data.get("editions") is not None:
        editions = {}
        for label, info in _coerce_dict(data["editions"]).items():
            info = _coerce_dict(info)
            editions[str(label)] = EditionInfo(
                year=_int_value(_require(info, "year", "edition"), "edition 'year'"),
                editor=str(_require(info, "editor", "edition")),
            )

    pattern = _optional_str(data, "pattern")
    if pattern is not None and sort_keys:
        _check_sort_key_groups(pattern, sort_keys)

    return CatalogDefinition(
        name=str(_require(data, "name", "catalog definition")),
        description=_optional_str(data, "description"),
        canonical_format=_optional_str(data, "canonical_format"),
        pattern=pattern,
        sort_keys=sort_keys,
        group_by=group_by,
        aliases=aliases,
        editions=editions,
    )


def _check_sort_key_groups(pattern: str, sort_keys: list[SortKeySpec]) -> None:
    # A pattern that does not compile is not rejected; sort keys degrade to
    # the fallback ordering instead.
    try:
        group_count = re.compile(pattern).groups
    except re.error:
        return
    missing = [sk.group for sk in sort_keys if sk.group < 1 or sk.group > group_count]
    if missing:
        raise DocumentError(f"sort_keys reference groups {missing} not present in pattern")


def parse_composer(data: Any) -> Composer:
    if not isinstance(data, dict):
        raise DocumentError("composer must be an object")

    name = _coerce_dict(_require(data, "name", "composer"))
    catalogs = None
    if data.get("catalogs") is not None:
        catalogs = {
            str(scheme): parse_catalog_definition(defn)
            for scheme, defn in _coerce_dict(data["catalogs"]).items()
        }

    return Composer(
        id=str(_require(data, "id", "composer")),
        name=ComposerName(
            full=str(_require(name, "full", "composer name")),
            sort=str(_require(name, "sort", "composer name")),
        ),
        default_scheme=_optional_str(data, "default_scheme"),
        born=None if data.get("born") is None else str(data["born"]),
        died=None if data.get("died") is None else str(data["died"]),
        nationality=_optional_str(data, "nationality"),
        catalogs=catalogs,
        xref=_str_map(data.get("xref"), "xref"),
    )
