"""Subcommand modules for lineagectl.

Provides register_commands() with deferred imports so ``lineagectl --help``
stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from lineagectl.commands.script import describe, export, run, show

    cli.add_command(run)
    cli.add_command(show)
    cli.add_command(export)
    cli.add_command(describe)
