"""Decide how a result is rendered and which exit code it produces.

Pure decision logic — rendering itself lives in the CLI encoder.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cv_api4.core.formats import DEFAULT_FORMAT, is_structured, require_known_format
from cv_api4.core.models import ApiResult, OutputDecision

EXIT_OK: int = 0
EXIT_API_ERROR: int = 1


def derive_columns(params: Mapping[str, Any], result: ApiResult) -> tuple[str, ...]:
    """Pick table columns: ``select`` when given, else the first row's keys."""
    select = params.get("select")
    if isinstance(select, str) and select.strip():
        return tuple(part.strip() for part in select.split(",") if part.strip())
    if isinstance(select, list) and select:
        return tuple(str(item) for item in select)
    first = result.first_row()
    return tuple(first.keys()) if first else ()


def decide_output(
    out_format: str,
    action: str,
    result: ApiResult,
    params: Mapping[str, Any],
) -> OutputDecision:
    """Choose tabular or structured rendering for *result*.

    Tabular formats only make sense for non-empty ``get`` results; any
    other case degrades to :data:`DEFAULT_FORMAT` with a warning instead
    of failing.

    Raises
    ------
    ConfigurationError
        If *out_format* is not a known format.
    """
    require_known_format(out_format)

    if is_structured(out_format):
        return OutputDecision(mode="structured", format=out_format)

    if action != "get" or not result:
        return OutputDecision(
            mode="structured",
            format=DEFAULT_FORMAT,
            forced_format=DEFAULT_FORMAT,
            warning=(
                f'The output format "{out_format}" only works with tabular data. '
                f'Try using a "get" API. Forcing format to "{DEFAULT_FORMAT}".'
            ),
        )

    return OutputDecision(
        mode="tabular",
        format=out_format,
        columns=derive_columns(params, result),
    )


def exit_code_for(result: ApiResult | None) -> int:
    """``0`` for dry-run or success, ``1`` when the API reported an error."""
    if result is None or not result.is_error():
        return EXIT_OK
    return EXIT_API_ERROR
