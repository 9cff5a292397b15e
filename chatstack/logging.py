"""Logging setup for the chat client and its command-line front end."""

from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

from .console import console


def configure_logging(level: str = "INFO") -> None:
    """Route log records through a Rich handler on the shared console."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False, show_path=False)],
        force=True,
    )
    # Keep connection-pool chatter out of DEBUG sessions.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "chatstack")
