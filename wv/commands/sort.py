"""Sort commands - order catalog numbers and show their sort keys."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from rich.console import Console

from ..catalog import sort_key, sort_numbers
from ..definitions import load_catalog_def


def run_sort(data_dir: Path, scheme: str, lines: Iterable[str], composer: str | None = None) -> int:
    """Print the non-blank input lines in scheme order."""
    defn = load_catalog_def(data_dir, scheme, composer)
    numbers = [line.strip() for line in lines if line.strip()]

    for number in sort_numbers(numbers, defn):
        print(number)
    return 0


def run_sort_key(data_dir: Path, scheme: str, number: str, composer: str | None = None) -> int:
    """Print the typed sort key of one number.

    Returns:
        Exit code (0 = success, 1 = scheme has no definition)
    """
    console = Console(stderr=True)

    defn = load_catalog_def(data_dir, scheme, composer)
    if defn is None:
        console.print(f"Unknown catalog: {scheme}", style="bold red")
        return 1

    print(sort_key(number, defn))
    return 0
