"""CLI entrypoint for wv."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import load_config, resolve_data_dir, resolve_editor


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="wv")
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Data root containing compositions/, collections/, composers/ and catalogs/",
)
@click.option("--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """wv - Werkverzeichnis catalog tools.

    Look up compositions by composer and catalog number, sort catalog
    numbers naturally, and inspect merged attributions.
    """
    _setup_logging(verbose)

    config = load_config()
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["data_dir"] = resolve_data_dir(data_dir, config)


@cli.command()
@click.pass_context
def index(ctx: click.Context) -> None:
    """Build and write the index files under .indexes/."""
    from .commands.index_cmd import run_index

    sys.exit(run_index(ctx.obj["data_dir"]))


@cli.command()
@click.argument("target", required=False)
@click.argument("scheme", required=False)
@click.argument("number", required=False)
@click.option("--edition", default=None, help="Resolve numbers as of this catalog edition")
@click.option("--group", default=None, help="Filter to a group (e.g., op 2 includes 2, 2/1, 2/2)")
@click.option("--sorted", "sorted_", is_flag=True, help="Sort results by catalog order")
@click.option("--strict", is_flag=True, help="Only match current catalog numbers")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--terse", is_flag=True, help="Print IDs only")
@click.option("--edit", is_flag=True, help="Open the matching files in $EDITOR")
@click.option("--stdin", "from_stdin", is_flag=True, help="Read composition IDs from stdin, one per line")
@click.option("--quiet", "-q", is_flag=True, help="Suppress warnings and empty-result messages")
@click.pass_context
def get(
    ctx: click.Context,
    target: str | None,
    scheme: str | None,
    number: str | None,
    edition: str | None,
    group: str | None,
    sorted_: bool,
    strict: bool,
    output_json: bool,
    terse: bool,
    edit: bool,
    from_stdin: bool,
    quiet: bool,
) -> None:
    """Look up compositions.

    Examples:

        wv get bach bwv 846

        wv get beethoven op 2-10

        wv get haydn hob --group i

        wv get 0a1b2c3d

        wv get beethoven op --group 2 --terse | wv get --stdin
    """
    from .commands.get import run_get

    stdin_ids = None
    if from_stdin:
        stdin_ids = [line.strip() for line in click.get_text_stream("stdin") if line.strip()]

    exit_code = run_get(
        ctx.obj["data_dir"],
        target,
        scheme,
        number,
        edition=edition,
        group=group,
        sorted_=sorted_,
        strict=strict,
        output_json=output_json,
        quiet=quiet,
        terse=terse,
        edit=edit,
        editor=resolve_editor(ctx.obj["config"]),
        stdin_ids=stdin_ids,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("scheme")
@click.option("--composer", default=None, help="Use this composer's scheme definition")
@click.pass_context
def sort(ctx: click.Context, scheme: str, composer: str | None) -> None:
    """Sort catalog numbers read from stdin, one per line."""
    from .commands.sort import run_sort

    sys.exit(run_sort(ctx.obj["data_dir"], scheme, click.get_text_stream("stdin"), composer))


@cli.command("sort-key")
@click.argument("scheme")
@click.argument("number")
@click.option("--composer", default=None, help="Use this composer's scheme definition")
@click.pass_context
def sort_key(ctx: click.Context, scheme: str, number: str, composer: str | None) -> None:
    """Show the sort key of a catalog number."""
    from .commands.sort import run_sort_key

    sys.exit(run_sort_key(ctx.obj["data_dir"], scheme, number, composer))


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def merge(ctx: click.Context, path: Path, output_json: bool) -> None:
    """Show the merged attribution of a composition file."""
    from .commands.merge import run_merge

    sys.exit(run_merge(ctx.obj["data_dir"], path, output_json))


@cli.command()
@click.argument("composer")
@click.argument("scheme")
@click.argument("number", required=False)
@click.option("--source", default="mb", show_default=True, help="Cross-reference key in each composition's xref")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def xref(
    ctx: click.Context,
    composer: str,
    scheme: str,
    number: str | None,
    source: str,
    output_json: bool,
) -> None:
    """Report stored cross-references and duplicate external IDs.

    Examples:

        wv xref mozart k

        wv xref beethoven op 2-10 --json
    """
    from .commands.xref import run_xref

    sys.exit(run_xref(ctx.obj["data_dir"], composer, scheme, number, source=source, output_json=output_json))


@cli.group()
def collection() -> None:
    """Collection commands."""
    pass


@collection.command("list")
@click.option("--composer", default=None, help="Only this composer's collections")
@click.pass_context
def collection_list(ctx: click.Context, composer: str | None) -> None:
    """List collections with their member counts."""
    from .commands.collection import run_list

    sys.exit(run_list(ctx.obj["data_dir"], composer))


@collection.command("show")
@click.argument("collection_id")
@click.pass_context
def collection_show(ctx: click.Context, collection_id: str) -> None:
    """Show the members of a collection."""
    from .commands.collection import run_show

    sys.exit(run_show(ctx.obj["data_dir"], collection_id))


@collection.command("find")
@click.argument("query")
@click.pass_context
def collection_find(ctx: click.Context, query: str) -> None:
    """Find collections containing SCHEME:NUMBER (e.g., bwv:846)."""
    from .commands.collection import run_find

    sys.exit(run_find(ctx.obj["data_dir"], query))


@collection.command("expand")
@click.argument("collection_ids", nargs=-1, required=True)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def collection_expand(ctx: click.Context, collection_ids: tuple[str, ...], output_json: bool) -> None:
    """Expand collections into composer, scheme and number references."""
    from .commands.collection import run_expand

    sys.exit(run_expand(ctx.obj["data_dir"], list(collection_ids), output_json))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
