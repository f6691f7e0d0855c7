"""Commands that replay a genealogy script and report on the result."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from lineagectl.commands._base import LineageCommand
from lineagectl.services.export import EXPORT_FORMATS, ExportService
from lineagectl.services.genealogy import GenealogyService

if TYPE_CHECKING:
    from lineagectl.commands._context import AppContext

_SCRIPT = click.argument(
    "script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


@click.command(
    cls=LineageCommand,
    examples="""\
  lineagectl run outbreak.toml
  lineagectl run outbreak.toml --keep-going
  lineagectl --json run outbreak.toml
  lineagectl --permissive run loops.toml""",
)
@_SCRIPT
@click.option("--keep-going", is_flag=True, help="Continue after a failed step.")
@click.pass_obj
def run(app: AppContext, script: Path, keep_going: bool) -> None:
    """Replay SCRIPT and report every step."""
    _genealogy, result = app.replay(script, keep_going=keep_going)
    app.emit(result)


@click.command(
    cls=LineageCommand,
    examples="""\
  lineagectl show outbreak.toml
  lineagectl show outbreak.toml --max-depth 3
  lineagectl --json show outbreak.toml""",
)
@_SCRIPT
@click.option("--max-depth", type=int, default=None, help="Deepest level to expand.")
@click.pass_obj
def show(app: AppContext, script: Path, max_depth: int | None) -> None:
    """Replay SCRIPT and draw the genealogy as a tree from the stem."""
    genealogy, result = app.replay(script)
    if not result.ok:
        app.emit(result)
    depth = max_depth if max_depth is not None else app.settings.output.tree_max_depth
    app.emit(ExportService(genealogy).tree(max_depth=depth))


@click.command(
    cls=LineageCommand,
    examples="""\
  lineagectl export outbreak.toml
  lineagectl export outbreak.toml --format json > outbreak.json""",
)
@_SCRIPT
@click.option(
    "--format",
    "fmt",
    type=click.Choice(EXPORT_FORMATS),
    default="dot",
    show_default=True,
    help="Output format.",
)
@click.pass_obj
def export(app: AppContext, script: Path, fmt: str) -> None:
    """Replay SCRIPT and export the genealogy as DOT or JSON."""
    genealogy, result = app.replay(script)
    if not result.ok:
        app.emit(result)
    app.emit(ExportService(genealogy).export_graph(fmt=fmt))


@click.command(
    cls=LineageCommand,
    examples="""\
  lineagectl describe outbreak.toml C
  lineagectl --json describe outbreak.toml S""",
)
@_SCRIPT
@click.argument("node_id")
@click.pass_obj
def describe(app: AppContext, script: Path, node_id: str) -> None:
    """Replay SCRIPT and show the parents and children of NODE_ID."""
    genealogy, result = app.replay(script)
    if not result.ok:
        app.emit(result)
    app.emit(GenealogyService(genealogy).describe(_coerce_id(genealogy.stem_id, node_id)))


def _coerce_id(stem_id: Any, raw: str) -> Any:
    """Give a command-line id the type the script's ids use."""
    if isinstance(stem_id, int):
        try:
            return int(raw)
        except ValueError:
            msg = f"{raw!r} is not an integer id"
            raise click.BadParameter(msg, param_hint="NODE_ID") from None
    return raw
