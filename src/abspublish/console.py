"""Console logging — the default PluginLogger for CLI and API runs.

Hosts may pass any object with ``info``/``warn``/``error``/``verbose``.
``ConsoleLogger`` writes to stderr and styles output with ANSI colors.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import Protocol, TextIO


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


COLOR = _supports_color()

RESET = "\033[0m" if COLOR else ""
BOLD = "\033[1m" if COLOR else ""
DIM = "\033[2m" if COLOR else ""
CYAN = "\033[36m" if COLOR else ""
GREEN = "\033[32m" if COLOR else ""
YELLOW = "\033[33m" if COLOR else ""
RED = "\033[31m" if COLOR else ""
MAGENTA = "\033[35m" if COLOR else ""


def magenta(text: str) -> str:
    return f"{MAGENTA}{text}{RESET}"


# ---------------------------------------------------------------------------
# Logger protocol
# ---------------------------------------------------------------------------


class PluginLogger(Protocol):
    """Logger handed to the plugin by its host."""

    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...

    def verbose(self, msg: str) -> None: ...


class ConsoleLogger:
    """Plain stderr logger with an opt-in verbose level.

    Args:
        verbose: Emit ``verbose()`` messages.
        stream: Output stream (defaults to ``sys.stderr`` at call time).

    """

    __slots__ = ("_stream", "_verbose")

    def __init__(self, *, verbose: bool = False, stream: TextIO | None = None) -> None:
        self._verbose = verbose
        self._stream = stream

    def _emit(self, prefix: str, msg: str) -> None:
        print(f"  {prefix} {msg}", file=self._stream or sys.stderr)

    def info(self, msg: str) -> None:
        self._emit(f"{CYAN}[info]{RESET}", msg)

    def warn(self, msg: str) -> None:
        self._emit(f"{YELLOW}[warn]{RESET}", msg)

    def error(self, msg: str) -> None:
        self._emit(f"{RED}[error]{RESET}", msg)

    def verbose(self, msg: str) -> None:
        if self._verbose:
            self._emit(f"{DIM}[verbose]{RESET}", f"{DIM}{msg}{RESET}")
