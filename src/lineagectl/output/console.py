"""Rich Console factory and theme for lineagectl output.

Consoles render into a StringIO buffer so formatters keep returning plain
strings. Rich drops color codes on its own when output is not a TTY.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LINEAGE_THEME = Theme(
    {
        "lin.ok": "bold green",
        "lin.error": "bold red",
        "lin.warning": "bold yellow",
        "lin.op": "bold cyan",
        "lin.key": "dim",
        "lin.id": "bold blue",
        "lin.stem": "bold magenta",
        "lin.repeat": "dim italic",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LINEAGE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
