"""Thread-safe progress counter for dispatched work."""

from __future__ import annotations

import sys
import threading
import time
from typing import Dict, Optional, TextIO

RESET = "\033[0m"
CYAN = "\033[96m"
DIM = "\033[2m"


def is_tty(stream: Optional[TextIO] = None) -> bool:
    """True when ``stream`` (stderr by default) is an interactive terminal."""
    target = stream or sys.stderr
    try:
        return bool(target.isatty())
    except (AttributeError, ValueError):
        return False


class ProgressSink:
    """Counts attempted work items and optionally renders a progress line.

    ``advance`` may be called concurrently from any number of workers. It is
    purely observational: rendering problems are ignored and never reach the
    caller.
    """

    def __init__(
        self,
        total: int = 0,
        label: str = "Summarizing",
        stream: Optional[TextIO] = None,
        show: bool = False,
    ) -> None:
        self.total = total
        self.label = label
        self.completed = 0
        self._stream = stream
        self._show = show
        self._start = time.time()
        self._lock = threading.Lock()

    def advance(self, count: int = 1) -> None:
        if count <= 0:
            return
        with self._lock:
            self.completed += count
            self._render()

    def finish(self) -> None:
        if not self._show:
            return
        with self._lock:
            self._write("\n")

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            elapsed = max(time.time() - self._start, 1e-6)
            return {
                "total": self.total,
                "completed": self.completed,
                "elapsed": elapsed,
                "rate": self.completed / elapsed if self.completed else 0.0,
            }

    def _render(self) -> None:
        if not self._show:
            return
        if self.total:
            counts = f"{self.completed}/{self.total}"
        else:
            counts = str(self.completed)
        self._write(f"\r{CYAN}{self.label}{RESET} {DIM}[{counts}]{RESET}")

    def _write(self, text: str) -> None:
        stream = self._stream or sys.stderr
        try:
            stream.write(text)
            stream.flush()
        except (OSError, ValueError):
            pass
