"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Builds genealogies from scripts and owns result
emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from lineagectl.genealogy import Genealogy
from lineagectl.output.formatters import format_result
from lineagectl.services.script import Script, ScriptError, ScriptService, load_script

if TYPE_CHECKING:
    from lineagectl.config.settings import LineageSettings
    from lineagectl.plugins.manager import PluginManager
    from lineagectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: LineageSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        from lineagectl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from lineagectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugins(self) -> PluginManager:
        """Plugin manager with entry-point plugins loaded (created on first access)."""
        if self._plugins is None:
            from lineagectl.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover()
        return self._plugins

    def load(self, path: Path) -> Script:
        """Load a script file, turning script errors into a Click error."""
        try:
            return load_script(path, default_stem=self.settings.genealogy.default_stem)
        except ScriptError as exc:
            raise click.ClickException(str(exc)) from exc

    def replay(
        self,
        path: Path,
        *,
        keep_going: bool = False,
    ) -> tuple[Genealogy[Any, Any], ServiceResult]:
        """Build a fresh genealogy from the script at *path*."""
        script = self.load(path)
        genealogy: Genealogy[Any, Any] = Genealogy(
            script.stem,
            enforce_acyclic=self.settings.enforce_acyclic,
        )
        result = ScriptService(genealogy, self.plugins).replay(script, keep_going=keep_going)
        return genealogy, result

    def emit(self, result: ServiceResult) -> None:
        """Write a ServiceResult with correct exit semantics.

        * Success: stdout; warnings go to stderr in human mode.
        * Failure: stderr, then exit code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
        )
        if result.ok:
            if output:
                click.echo(output)
            if not self.settings.json_output and not self.settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
