"""Root CLI group for lineagectl with global flags and command registration."""

from __future__ import annotations

import click

from lineagectl import __version__
from lineagectl.commands import register_commands
from lineagectl.commands._context import AppContext
from lineagectl.config.settings import LineageSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="lineagectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing data.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--permissive", is_flag=True, help="Allow links that create cycles.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    permissive: bool,
) -> None:
    """lineagectl — replay and inspect genealogy scripts."""
    settings = LineageSettings.from_cli(
        config_path=config_path,
        # Unset flags fall through to env vars and TOML.
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        permissive=permissive or None,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
