"""Utility functions for bwbootstrap."""

from __future__ import annotations

import threading
from typing import Literal

from rich.console import Console
from rich.markup import escape

from .errors import CancelledError

console = Console()

_VERBOSE = False

_STYLES = {
    "info": "blue",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "debug": "dim",
}


def setup_logging(verbose: bool = False) -> None:  # noqa: FBT001, FBT002
    """Configure logging level based on verbosity."""
    global _VERBOSE  # noqa: PLW0603
    _VERBOSE = verbose


def log(
    message: str,
    level: Literal["default", "info", "success", "warning", "error", "debug"] = "default",
    emoji: str = "",
    *,
    print_exception: bool = False,
) -> None:
    """Print a message to the console with a level-dependent style."""
    if level == "debug" and not _VERBOSE:
        return
    prefix = f"{emoji} " if emoji else ""
    message = escape(message)
    style = _STYLES.get(level)
    if style:
        console.print(f"{prefix}[{style}]{message}[/{style}]")
    else:
        console.print(f"{prefix}{message}")
    if print_exception:
        console.print_exception()


def check_cancelled(cancel_event: threading.Event | None, what: str = "Operation") -> None:
    """Raise CancelledError if the cancel event is set."""
    if cancel_event is not None and cancel_event.is_set():
        msg = f"{what} cancelled"
        raise CancelledError(msg)
