from __future__ import annotations
import logging
from rich.console import Console
from rich.logging import RichHandler

# -v count -> level; anything above the last entry is DEBUG
_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def verbosity_level(verbosity: int) -> int:
    return _LEVELS[max(0, min(verbosity, len(_LEVELS) - 1))]


def setup_logging(verbosity: int = 0) -> None:
    """Route all logging through one rich handler on stderr; stdout may carry data."""
    root = logging.getLogger()
    root.setLevel(verbosity_level(verbosity))
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_time=False))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
