"""Render results to stdout in the supported output formats.

Structured formats (``json-pretty``, ``json-strict``, ``pretty``,
``shell``, ``none``) accept any data shape.  Tabular formats (``table``,
``csv``, ``list``) take rows plus an explicit column list; the router
decides which path a result takes.

Data formats are written verbatim to stdout — never through Rich markup
processing — so they stay machine-readable.
"""

from __future__ import annotations

import csv
import json
import re
import shlex
import sys
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from cv_api4.cli.console import escape, out
from cv_api4.core.models import ApiResult, InvocationRequest, OutputDecision, Row
from cv_api4.exceptions import ConfigurationError


def _emit(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


# ---------------------------------------------------------------------------
# Value helpers (pure)
# ---------------------------------------------------------------------------

def to_json(data: Any, *, pretty: bool = True) -> str:
    """JSON text with unescaped unicode; pretty uses 4-space indent."""
    if pretty:
        return json.dumps(data, indent=4, ensure_ascii=False, default=str)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)


def format_cell(value: Any) -> str:
    """Render one table cell: ``None`` → ``""``, nested values as compact JSON."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return to_json(value, pretty=False)


_SHELL_KEY_RE = re.compile(r"[^A-Za-z0-9_]")


def flatten(data: Any, prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(key, scalar)`` pairs, joining nested keys with ``_``."""
    if isinstance(data, Mapping):
        items: Iterator[tuple[Any, Any]] = iter(data.items())
    elif isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        items = iter(enumerate(data))
    else:
        yield (prefix or "value"), data
        return
    for key, value in items:
        name = f"{prefix}_{key}" if prefix else str(key)
        yield from flatten(value, name)


def _shell_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def to_shell(data: Any) -> str:
    """``KEY='VALUE'`` lines suitable for ``eval`` in a POSIX shell."""
    lines = [
        f"{_SHELL_KEY_RE.sub('_', key)}={shlex.quote(_shell_scalar(value))}"
        for key, value in flatten(data)
    ]
    return "\n".join(lines)


def _table_cells(rows: Sequence[Row], columns: Sequence[str]) -> list[list[str]]:
    return [[format_cell(row.get(col)) for col in columns] for row in rows]


# ---------------------------------------------------------------------------
# Structured rendering
# ---------------------------------------------------------------------------

def render_structured(data: Any, fmt: str) -> None:
    """Write *data* to stdout in structured format *fmt*."""
    if fmt == "none":
        return
    if fmt == "json-pretty":
        _emit(to_json(data))
    elif fmt == "json-strict":
        _emit(to_json(data, pretty=False))
    elif fmt == "shell":
        text = to_shell(data)
        if text:
            _emit(text)
    elif fmt == "pretty":
        _render_pretty(data)
    else:
        raise ConfigurationError(f"Unknown structured output format: {fmt}")


def _render_pretty(data: Any) -> None:
    try:
        from rich.pretty import Pretty
    except ModuleNotFoundError:
        import pprint

        _emit(pprint.pformat(data))
        return
    out.print(Pretty(data, expand_all=True))


# ---------------------------------------------------------------------------
# Tabular rendering
# ---------------------------------------------------------------------------

def render_table(rows: Sequence[Row], columns: Sequence[str], fmt: str) -> None:
    """Write only *columns* of every row to stdout in tabular format *fmt*."""
    cells = _table_cells(rows, columns)
    if fmt == "csv":
        writer = csv.writer(sys.stdout, lineterminator="\n")
        writer.writerow(columns)
        writer.writerows(cells)
    elif fmt == "list":
        for line in cells:
            _emit("\t".join(line))
    elif fmt == "table":
        _render_rich_table(columns, cells)
    else:
        raise ConfigurationError(f"Unknown tabular output format: {fmt}")


def _render_rich_table(columns: Sequence[str], cells: list[list[str]]) -> None:
    try:
        from rich.table import Table
        from rich.text import Text
    except ModuleNotFoundError:
        _print_plain_table(columns, cells)
        return

    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    for col in columns:
        table.add_column(Text(col))
    for line in cells:
        table.add_row(*(Text(cell) for cell in line))
    out.print(table)


def _print_plain_table(columns: Sequence[str], cells: list[list[str]]) -> None:
    """Render a table without Rich."""
    widths = [len(col) for col in columns]
    for line in cells:
        widths = [max(width, len(cell)) for width, cell in zip(widths, line)]
    header = "  ".join(col.ljust(width) for col, width in zip(columns, widths))
    _emit(header.rstrip())
    _emit("  ".join("-" * width for width in widths))
    for line in cells:
        _emit("  ".join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip())


# ---------------------------------------------------------------------------
# Entry points used by the app
# ---------------------------------------------------------------------------

def render_result(result: ApiResult, decision: OutputDecision) -> None:
    """Render *result* as decided by the output router."""
    if decision.mode == "tabular":
        render_table(result.rows, decision.columns or (), decision.format)
    else:
        render_structured(result.to_data(), decision.format)


def render_preview(request: InvocationRequest) -> None:
    """Show the call that is about to be made (dry-run / verbose)."""
    out.print(f"[green]Entity[/green]: [yellow]{escape(request.entity)}[/yellow]")
    out.print(f"[green]Action[/green]: [yellow]{escape(request.action)}[/yellow]")
    sys.stdout.flush()
    _emit("Params: " + to_json(request.params_dict()))
