"""Index command - rebuild and persist the lookup tables."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..index import COMPOSER_INDEX_FILE, EDITIONS_DIR, INDEX_FILE, build_index, save_index


def run_index(data_dir: Path) -> int:
    """Build the index from every composition and write it under .indexes/.

    Returns:
        Exit code (0 = success, 1 = index could not be written)
    """
    console = Console(stderr=True)

    print(f"Building index from {data_dir}...")
    index = build_index(data_dir)

    print(f"Found {index.composition_count} compositions")
    print(f"Found {index.catalog_entry_count} catalog entries")

    try:
        out = save_index(index, data_dir)
    except OSError as e:
        console.print(f"Error writing index: {e}", style="bold red")
        return 1

    print(f"Wrote {out / INDEX_FILE}")
    print(f"Wrote {out / COMPOSER_INDEX_FILE}")
    if index.editions:
        print(f"Wrote edition indexes to {out / EDITIONS_DIR}")
    print("Done.")
    return 0
