"""Rich Console factory and theme for formtree output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FORMTREE_THEME = Theme(
    {
        "ft.ok": "bold green",
        "ft.error": "bold red",
        "ft.warning": "bold yellow",
        "ft.op": "bold cyan",
        "ft.key": "dim",
        "ft.id": "bold blue",
        "ft.path": "dim",
        "ft.title": "bold",
        "ft.section": "bold magenta",
        "ft.field": "default",
        "ft.type": "cyan",
        "ft.system": "yellow",
        "ft.required": "red",
        "ft.preview": "dim",
    }
)

_KIND_STYLES: dict[str, str] = {
    "section": "ft.section",
    "field": "ft.field",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=FORMTREE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for an item kind (``section`` / ``field``)."""
    return _KIND_STYLES.get(kind, "")
