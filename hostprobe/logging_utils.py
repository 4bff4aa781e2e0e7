from __future__ import annotations

import logging
import sys

from rich.console import Console

LOGGER_NAME = "hostprobe"

console = Console()

_logger = logging.getLogger(LOGGER_NAME)
_logger.addHandler(logging.NullHandler())


def setup_logging(level: int = logging.INFO, *, stream=None) -> logging.Logger:
    """Attach a formatted stream handler to the ``hostprobe`` logger.

    The package never configures the root logger itself; host applications
    that want the probe diagnostics on screen call this once at startup.
    Calling it again only updates the level.
    """

    _logger.setLevel(level)
    if not any(getattr(h, "_hostprobe", False) for h in _logger.handlers):
        fmt = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        sh = logging.StreamHandler(stream or sys.stderr)
        sh.setFormatter(fmt)
        sh._hostprobe = True  # type: ignore[attr-defined]
        _logger.addHandler(sh)
    return _logger


def print_success(message: str) -> None:
    """Print *message* in green on the shared console."""

    console.print(f"[green]{message}[/]")
