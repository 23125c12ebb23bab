"""Collection commands - list, show, find and expand collections."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from rich.console import Console

from ..collection import collection_composer, expand_collections, find_collections, list_collections
from ..exceptions import DocumentError, InvalidIdError
from ..index import get_or_build_index
from ..store.loader import (
    COLLECTIONS_DIR,
    COMPOSITIONS_DIR,
    collection_path_from_id,
    load_collection,
    load_composition,
    path_for_id,
)
from .get import composition_title


def run_list(data_dir: Path, composer: str | None = None) -> int:
    for collection in list_collections(data_dir, composer):
        print(f"{collection.id}\t{collection.display_title}\t({len(collection.compositions)})")
    return 0


def run_show(data_dir: Path, collection_id: str) -> int:
    """Print a collection's members, resolved through the index.

    Returns:
        Exit code (0 = success, 1 = collection missing or unreadable)
    """
    console = Console(stderr=True)
    data_dir = Path(data_dir)

    path = collection_path_from_id(data_dir / COLLECTIONS_DIR, collection_id)
    if not path.exists():
        console.print(f"Collection not found: {collection_id}", style="bold red")
        return 1
    try:
        collection = load_collection(path)
    except DocumentError as e:
        console.print(f"Error loading collection: {e}", style="bold red")
        return 1

    composer = collection_composer(collection)
    index = get_or_build_index(data_dir)

    print(collection.display_title)
    print()
    for number in collection.compositions:
        label = f"{collection.scheme.upper()} {number}"
        found = index.query().composer(composer).scheme(collection.scheme).number(number).fetch_one()
        if found is None:
            print(f"{label} (not indexed)")
            continue
        try:
            composition = load_composition(path_for_id(data_dir / COMPOSITIONS_DIR, found))
        except (DocumentError, InvalidIdError):
            print(f"{found}  {label}")
            continue
        print(f"{found}  {label}  {composition_title(composition)}")
    return 0


def run_find(data_dir: Path, query: str) -> int:
    """Print the collections containing `scheme:number`."""
    console = Console(stderr=True)

    scheme, sep, number = query.partition(":")
    if not sep or not scheme or not number:
        console.print("Usage: wv collection find <scheme>:<number>", style="bold red")
        console.print("Example: wv collection find bwv:846")
        return 1

    found = find_collections(data_dir, scheme, number)
    if not found:
        print(f"No collections contain {scheme}:{number}")
        return 0
    for collection_id in found:
        print(collection_id)
    return 0


def run_expand(data_dir: Path, collection_ids: list[str], output_json: bool = False) -> int:
    refs = expand_collections(data_dir, collection_ids)
    if output_json:
        print(json.dumps([asdict(r) for r in refs], indent=2))
    else:
        for ref in refs:
            print(ref)
    return 0
