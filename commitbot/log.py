"""Logging setup for the command line."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[91m"
YELLOW = "\033[93m"
DIM = "\033[2m"

_LEVEL_LABELS = {
    logging.CRITICAL: ("ERROR", RED + BOLD),
    logging.ERROR: ("ERROR", RED + BOLD),
    logging.WARNING: ("WARN ", YELLOW + BOLD),
    logging.INFO: ("INFO ", BOLD),
    logging.DEBUG: ("DEBUG", DIM),
}


class LevelLabelFormatter(logging.Formatter):
    """``LEVEL message`` with a coloured level label when writing to a tty."""

    def __init__(self, color: bool) -> None:
        super().__init__("%(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        label, style = _LEVEL_LABELS.get(record.levelno, (record.levelname, ""))
        if self.color and style:
            label = f"{style}{label}{RESET}"
        return f"{label} {message}"


def level_for_verbosity(verbosity: int, debug: bool = False) -> int:
    if debug:
        return logging.DEBUG
    if verbosity <= 0:
        return logging.ERROR
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def init_logging(
    verbosity: int = 0, debug: bool = False, stream: Optional[TextIO] = None
) -> None:
    """Configure the ``commitbot`` logger: 0=errors, -v=info, -vv=debug."""
    target = stream or sys.stderr
    handler = logging.StreamHandler(target)
    is_tty = getattr(target, "isatty", lambda: False)()
    handler.setFormatter(LevelLabelFormatter(color=bool(is_tty)))

    logger = logging.getLogger("commitbot")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level_for_verbosity(verbosity, debug))
    logger.propagate = False
