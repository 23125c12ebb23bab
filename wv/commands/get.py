"""Get command - look up compositions by catalog number or ID."""

from __future__ import annotations

import json
import shlex
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path

from rich.console import Console

from ..config import DEFAULT_EDITOR
from ..exceptions import DocumentError, InvalidIdError
from ..index import get_or_build_index
from ..merge import merge_attribution_with_collections
from ..models import Composition
from ..query import QueryResult
from ..store.loader import COLLECTIONS_DIR, COMPOSITIONS_DIR, is_composition_id, load_composition, load_json, path_for_id

RANGE_SEPARATORS = ("-", "..", " ")


@dataclass(frozen=True)
class NumberSpec:
    """A single catalog number, or an inclusive range when `end` is set."""

    start: str
    end: str | None = None

    @property
    def is_range(self) -> bool:
        return self.end is not None


def _looks_like_catalog(text: str) -> bool:
    text = text.strip()
    if not text:
        return False
    return (text[0].isascii() and text[0].isalnum()) or ":" in text


def parse_number_spec(text: str) -> NumberSpec:
    """Read "2-10", "i:2..i:4" or "2 10" as a range, anything else as one number.

    Only the first separator present is tried.
    """
    for sep in RANGE_SEPARATORS:
        start, found, end = text.partition(sep)
        if not found:
            continue
        start, end = start.strip(), end.strip()
        if end and _looks_like_catalog(start) and _looks_like_catalog(end):
            return NumberSpec(start, end)
        break
    return NumberSpec(text)


def composition_title(composition: Composition) -> str:
    """English title, then German, then any; "<form> in <key>" without one."""
    if composition.title:
        for lang in ("en", "de"):
            if lang in composition.title:
                return composition.title[lang]
        return next(iter(composition.title.values()))
    if composition.key:
        return f"{composition.form} in {composition.key}"
    return composition.form


def run_get(
    data_dir: Path,
    target: str | None,
    scheme: str | None = None,
    number: str | None = None,
    *,
    edition: str | None = None,
    group: str | None = None,
    sorted_: bool = False,
    strict: bool = False,
    output_json: bool = False,
    quiet: bool = False,
    terse: bool = False,
    edit: bool = False,
    editor: str = DEFAULT_EDITOR,
    stdin_ids: list[str] | None = None,
) -> int:
    """Resolve a query against the index, or show compositions by ID.

    `stdin_ids`, when given, replaces the positional arguments with IDs read
    from standard input (for example the output of `--terse`).

    Returns:
        Exit code (0 = success, 1 = invalid query or unreadable document)
    """
    console = Console(stderr=True)
    data_dir = Path(data_dir)

    if stdin_ids is not None:
        ids = []
        for line in stdin_ids:
            if is_composition_id(line):
                ids.append(line)
            elif not quiet:
                console.print(f"warning: skipping '{line}', not a composition ID", style="yellow", markup=False)
    elif target is None:
        console.print("Usage: wv get <composer> [scheme] [number]", markup=False)
        console.print("       wv get <id> [id...]", markup=False)
        console.print("       wv get --stdin", markup=False)
        return 1
    elif is_composition_id(target):
        ids = [target] + [extra for extra in (scheme, number) if extra and is_composition_id(extra)]
    else:
        ids = None

    if ids is not None:
        if not ids:
            if not quiet:
                console.print("No results found.", style="yellow")
            return 0
        if edit:
            return _open_in_editor(editor, [_composition_path(data_dir, i) for i in ids], console)
        return _show_ids(data_dir, ids, output_json, console)

    spec = parse_number_spec(number) if number is not None else None
    if ((spec is not None and spec.is_range) or group is not None) and scheme is None:
        console.print("Error: range and group queries require a catalog scheme", style="bold red")
        console.print("Usage: wv get <composer> <scheme> <range>")
        return 1

    index = get_or_build_index(data_dir)
    builder = index.query().composer(target).data_dir(data_dir)

    if scheme is not None:
        builder.scheme(scheme)
    if spec is not None:
        if spec.is_range:
            builder.range(spec.start, spec.end)
        else:
            builder.number(spec.start)
    if edition is not None:
        builder.edition(edition)
    if group is not None:
        builder.group(group)

    results = builder.sorted(sorted_).strict(strict).fetch()

    if not results:
        if not quiet:
            console.print("No results found.", style="yellow")
        return 0

    if not quiet:
        for result in results:
            if result.superseded and result.number and result.current_number:
                console.print(
                    f"warning: {(scheme or '').upper()} {result.number} is superseded "
                    f"(current: {result.current_number})",
                    style="yellow",
                )

    if edit:
        return _open_in_editor(editor, [_composition_path(data_dir, r.id) for r in results], console)

    if output_json:
        print(json.dumps([asdict(r) for r in results], indent=2, ensure_ascii=False))
    elif terse:
        for result in results:
            print(result.id)
    else:
        for result in results:
            print(_format_result(data_dir, result, scheme))
    return 0


def _composition_path(data_dir: Path, composition_id: str) -> Path:
    return path_for_id(data_dir / COMPOSITIONS_DIR, composition_id.lower())


def _format_result(data_dir: Path, result: QueryResult, scheme: str | None) -> str:
    parts = [result.id]
    if result.number is not None:
        parts.append(f"{scheme.upper()} {result.number}" if scheme else result.number)

    try:
        parts.append(composition_title(load_composition(_composition_path(data_dir, result.id))))
    except (DocumentError, InvalidIdError):
        pass

    if result.note:
        parts.append(f"({result.note})")
    return "  ".join(parts)


def _show_ids(data_dir: Path, ids: list[str], output_json: bool, console: Console) -> int:
    exit_code = 0
    documents = []

    for composition_id in ids:
        try:
            path = _composition_path(data_dir, composition_id)
            if output_json:
                documents.append(load_json(path))
                continue
            composition = load_composition(path)
        except (DocumentError, InvalidIdError) as e:
            console.print(f"Error: {e}", style="bold red")
            exit_code = 1
            continue

        merged = merge_attribution_with_collections(composition.attribution, data_dir / COLLECTIONS_DIR)
        numbers = ", ".join(f"{c.scheme}:{c.number}" for c in merged.catalog)
        line = f"{composition.id}  {composition_title(composition)}"
        if merged.composer:
            line += f"  [{merged.composer}]"
        if numbers:
            line += f"  {numbers}"
        print(line)

    if output_json and documents:
        print(json.dumps(documents, indent=2, ensure_ascii=False))
    return exit_code


def _open_in_editor(editor: str, paths: list[Path], console: Console) -> int:
    try:
        completed = subprocess.run([*shlex.split(editor), *(str(p) for p in paths)])
    except OSError as e:
        console.print(f"Failed to open editor '{editor}': {e}", style="bold red")
        return 1
    if completed.returncode != 0:
        console.print(f"Editor exited with status {completed.returncode}", style="yellow")
    return 0
