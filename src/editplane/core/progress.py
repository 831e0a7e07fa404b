"""User-facing status feedback for CLI operations.

Everything printed here goes to stderr. Stdout carries only the JSON
result of a command, so status lines never corrupt piped output.

Usage::

    from editplane.core.progress import status

    status("Found 12 symbols matching /vault/i")
    status("Applied 40 edits", style="success")  # ✓ Applied 40 edits
    status("src/a.ts drifted", style="warning")  # ! src/a.ts drifted
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from editplane.core.logging import get_logger

    return get_logger("progress")


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{escape(message)}", highlight=False)

    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Examples:
        pluralize(1, "edit") -> "1 edit"
        pluralize(3, "edit") -> "3 edits"
    """
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
