"""Xref command - report stored cross-references for a catalog scheme."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from rich.console import Console

from ..definitions import load_catalog_def
from ..exceptions import DocumentError, InvalidIdError
from ..index import get_or_build_index
from ..store.loader import COMPOSITIONS_DIR, load_composition, path_for_id
from ..xref import MappingLookup, XrefStats, lookup_batch
from .get import parse_number_spec


def run_xref(
    data_dir: Path,
    composer: str,
    scheme: str,
    number: str | None = None,
    *,
    source: str = "mb",
    output_json: bool = False,
) -> int:
    """List each current number of a scheme with its `source` cross-reference.

    External IDs claimed by more than one number are reported as warnings.

    Returns:
        Exit code (0 = success)
    """
    console = Console(stderr=True)
    data_dir = Path(data_dir)

    builder = get_or_build_index(data_dir).query().composer(composer).scheme(scheme).strict(True)
    if number is not None:
        spec = parse_number_spec(number)
        if spec.is_range:
            builder.range(spec.start, spec.end)
        else:
            builder.number(spec.start)
    results = builder.data_dir(data_dir).fetch()

    if not results:
        console.print("No results found.", style="yellow")
        return 0

    mapping = {}
    for result in results:
        if result.number is None:
            continue
        try:
            composition = load_composition(path_for_id(data_dir / COMPOSITIONS_DIR, result.id))
        except (DocumentError, InvalidIdError) as e:
            console.print(f"error reading {result.id}: {e}", style="bold red")
            continue
        external_id = (composition.xref or {}).get(source)
        if external_id:
            mapping[(composer, scheme, result.number)] = external_id

    numbers = [r.number for r in results if r.number is not None]
    definition = load_catalog_def(data_dir, scheme, composer)
    xrefs = lookup_batch(MappingLookup(mapping), composer, scheme, numbers, definition)
    stats = XrefStats.from_results(xrefs)

    if stats.duplicates:
        console.print(f"warning: duplicate {source} IDs found:", style="yellow")
        for external_id, nums in stats.duplicates.items():
            console.print(f"  {external_id} -> {', '.join(nums)}")

    if output_json:
        print(json.dumps([asdict(x) for x in xrefs], indent=2, ensure_ascii=False))
    else:
        for xref in xrefs:
            status = "[found]" if xref.matched else "[not found]"
            print(f"{xref.catalog_number}\t{xref.external_id or ''}\t{status}")

    console.print(f"matched: {stats.matched}, not found: {stats.not_found}")
    return 0
