"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) and plain
data output remain functional even when Rich is not installed.

``console`` writes diagnostics to stderr; ``out`` writes results and
previews to stdout.
"""

from __future__ import annotations

import sys
from typing import Any

from cv_api4.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console(*, stderr: bool = True) -> Any:
    """Create a Rich console instance targeting stderr (default) or stdout."""
    console_class = _load_rich_console_class()
    return console_class(stderr=stderr)


def escape(text: str) -> str:
    """Escape Rich markup in user-supplied *text* (no-op without Rich)."""
    try:
        from rich.markup import escape as rich_escape
    except ModuleNotFoundError:
        return text
    return rich_escape(text)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def __init__(self, *, stderr: bool) -> None:
        self._stderr = stderr

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain print."""
        try:
            rich_console = get_rich_console(stderr=self._stderr)
        except EnvironmentError:
            print(*objects, file=sys.stderr if self._stderr else sys.stdout)
            return
        rich_console.print(*objects)


console = _ConsoleProxy(stderr=True)
out = _ConsoleProxy(stderr=False)
