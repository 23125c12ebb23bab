"""Merge command - show the effective attribution of one composition."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..exceptions import DocumentError
from ..merge import MergedAttribution, merge_attribution_with_collections
from ..models import Composition
from ..store.loader import COLLECTIONS_DIR, load_composition


def run_merge(data_dir: Path, path: Path, output_json: bool = False) -> int:
    """Merge the attribution entries of the composition at `path`.

    Collection references are resolved against the data root.

    Returns:
        Exit code (0 = success, 1 = composition could not be loaded)
    """
    console = Console(stderr=True)

    try:
        composition = load_composition(path)
    except DocumentError as e:
        console.print(f"Error loading composition: {e}", style="bold red")
        return 1

    merged = merge_attribution_with_collections(composition.attribution, Path(data_dir) / COLLECTIONS_DIR)

    if output_json:
        print(json.dumps({"id": composition.id, "form": composition.form, **merged.to_dict()}, indent=2))
    else:
        _print_merged(composition, merged)
    return 0


def _print_merged(composition: Composition, merged: MergedAttribution) -> None:
    print(f"ID: {composition.id}")
    print(f"Form: {composition.form}")
    if composition.key:
        print(f"Key: {composition.key}")
    print()
    print("Merged attribution:")
    if merged.composer:
        print(f"  Composer: {merged.composer}")
    for label in ("composed", "published", "premiered", "revised"):
        value = getattr(merged.dates, label)
        if value is not None:
            print(f"  {label.capitalize()}: {value}")
    if merged.status:
        print(f"  Status: {merged.status}")
    if merged.catalog:
        print("  Catalog entries:")
        for cat in merged.catalog:
            edition = f" (ed. {cat.edition})" if cat.edition else ""
            print(f"    {cat.scheme}:{cat.number}{edition}")
    if merged.notes:
        print("  Notes:")
        for note in merged.notes:
            print(f"    - {note}")
