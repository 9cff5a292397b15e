"""Rich console shared by the CLI and the logging handler."""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "green",
        "prompt": "bold green",
        "model": "magenta",
        "muted": "dim",
    }
)

console = Console(theme=_THEME)

__all__ = ["console"]
