from __future__ import annotations
from typing import Any, Callable, Dict, Optional

from rich.console import Console

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Emits progress events {"phase", "pct", "msg"} to an optional callback.
    With verbose on, notices are also printed to stderr.
    """
    def __init__(self, callback: Optional[ProgressCallback] = None, *, verbose: bool = False,
                 console: Optional[Console] = None) -> None:
        self._cb = callback
        self.verbose = verbose
        self._console = console

    @property
    def console(self) -> Console:
        if self._console is None:
            self._console = Console(stderr=True, highlight=False)
        return self._console

    def emit(self, phase: str, pct: int = 100, msg: str = "") -> None:
        if self._cb is not None:
            self._cb({"phase": phase, "pct": pct, "msg": msg})

    def notice(self, phase: str, msg: str) -> None:
        """Success notice: always an event, printed only in verbose mode."""
        self.emit(phase, 100, msg)
        if self.verbose:
            self.console.print(msg, markup=False)

    def info(self, phase: str, msg: str) -> None:
        """Informational notice, printed regardless of verbose mode."""
        self.emit(phase, 100, msg)
        self.console.print(msg, markup=False)
