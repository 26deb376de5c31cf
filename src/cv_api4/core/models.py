"""Domain models for cv-api4.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and shape interpretation.  They carry zero
I/O and zero dependencies on external packages.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Union

# ---------------------------------------------------------------------------
# Parameter values
# ---------------------------------------------------------------------------

ParamValue = Union[str, int, float, bool, None, list["ParamValue"], dict[str, "ParamValue"]]
"""Any JSON value: the only shapes a parameter may take."""

ParamMap = dict[str, ParamValue]
"""Insertion-ordered parameter mapping sent to the remote call."""

Row = dict[str, Any]


def decode_value(text: str) -> ParamValue:
    """Decode *text* as JSON, falling back to the literal string.

    Total: never raises.  ``"10"`` becomes ``10``, ``"true"`` becomes
    ``True``, ``"Alice"`` stays ``"Alice"``.
    """
    try:
        return json.loads(text)
    except ValueError:
        return text


# ---------------------------------------------------------------------------
# Call defaults
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CallDefaults:
    """Parameters every call starts from; any explicit key overrides them."""

    version: int = 4
    check_permissions: bool = False

    def as_params(self) -> ParamMap:
        """Return a fresh :data:`ParamMap` using the API's key names."""
        return {"version": self.version, "checkPermissions": self.check_permissions}


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """A fully assembled ``Entity.action`` call.

    ``params`` is stored as a read-only view so the request cannot be
    altered once assembled.
    """

    entity: str
    action: str
    params: Mapping[str, ParamValue]

    @classmethod
    def build(cls, entity: str, action: str, params: ParamMap) -> InvocationRequest:
        return cls(entity=entity, action=action, params=MappingProxyType(dict(params)))

    def params_dict(self) -> ParamMap:
        """Return a mutable copy of the parameters (e.g. for JSON encoding)."""
        return dict(self.params)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ApiResult:
    """Interpreted response of a single remote call.

    The empty result is falsy, which is what the output router uses to
    refuse tabular rendering of "nothing".
    """

    rows: tuple[Row, ...] = ()
    error_message: str | None = None
    """Set when the API reported an application-level failure."""

    error_code: Any = None
    count: int | None = None
    payload: Any = field(default=None, compare=False)
    """Raw decoded response, kept for structured rendering of errors."""

    def __len__(self) -> int:
        return len(self.rows)

    def __bool__(self) -> bool:
        return len(self.rows) > 0

    def is_error(self) -> bool:
        return self.error_message is not None

    def first_row(self) -> Row | None:
        return self.rows[0] if self.rows else None

    def to_data(self) -> Any:
        """Return the value rendered by structured formats.

        Successful results render as their list of rows; errors render as
        the raw error payload so no detail reported by the API is lost.
        """
        if self.is_error():
            if isinstance(self.payload, Mapping):
                return dict(self.payload)
            return {"is_error": 1, "error_message": self.error_message}
        return [dict(row) for row in self.rows]

    @classmethod
    def from_payload(cls, payload: Any) -> ApiResult:
        """Interpret a decoded APIv4 response.

        Accepted shapes:

        * ``{"values": [...], "count": N, ...}`` — success.
        * ``{"error_message": "...", ...}`` or ``{"is_error": 1, ...}`` — error.
          A null or empty ``error_message`` alone is not an error.
        * ``[...]`` — a bare list of rows.
        """
        if isinstance(payload, Mapping):
            if payload.get("is_error") or payload.get("error_message"):
                message = payload.get("error_message") or "Unknown API error"
                return cls(
                    error_message=str(message),
                    error_code=payload.get("error_code"),
                    payload=payload,
                )
            raw_count = payload.get("count")
            return cls(
                rows=_coerce_rows(payload.get("values")),
                count=raw_count if isinstance(raw_count, int) else None,
                payload=payload,
            )
        if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
            rows = _coerce_rows(payload)
            return cls(rows=rows, count=len(rows), payload=payload)
        return cls(
            error_message=f"Unexpected API response: {payload!r}",
            payload=payload,
        )


def _coerce_rows(raw: object) -> tuple[Row, ...]:
    """Normalise ``values`` into a tuple of row dicts.

    APIv4 returns ``values`` keyed by id for some actions; scalars (e.g. a
    ``getFields`` name list) become single-column rows.
    """
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        raw = list(raw.values())
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return ({"value": raw},)
    return tuple(
        dict(entry) if isinstance(entry, Mapping) else {"value": entry}
        for entry in raw
    )


# ---------------------------------------------------------------------------
# Output decision
# ---------------------------------------------------------------------------

OutputMode = Literal["tabular", "structured"]


@dataclass(frozen=True, slots=True)
class OutputDecision:
    """How a result will be rendered.  Computed, never persisted."""

    mode: OutputMode
    format: str
    """Format actually used for rendering (after any forcing)."""

    columns: tuple[str, ...] | None = None
    forced_format: str | None = None
    """Set when a requested tabular format was replaced."""

    warning: str | None = None
