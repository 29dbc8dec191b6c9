import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def is_ci_environment():
    return (
        os.getenv('CI') is not None or
        os.getenv('GITHUB_ACTIONS') is not None or
        not sys.stdout.isatty()
    )


def get_console() -> Console:
    """Plain console in CI or when piped, full Rich output in a terminal."""
    if is_ci_environment():
        return Console(force_terminal=False, no_color=True)
    return Console()


def configure_logging(level: Optional[str] = None, console: Optional[Console] = None) -> int:
    """Route itempush loggers through Rich at ``level`` (default WARNING).

    Unknown level names fall back to WARNING. Returns the level applied.
    """
    resolved = logging.getLevelName((level or "WARNING").upper())
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    logger = logging.getLogger("itempush")
    logger.setLevel(resolved)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        logger.addHandler(handler)
    return resolved


def format_size(num_bytes: int) -> str:
    """Human readable size, e.g. ``9.0 MB``"""
    size = float(num_bytes)
    for unit in ["B", "KB", "MB"]:
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
