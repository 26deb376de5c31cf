"""Output format names known to the encoder.

Structured formats can render any result shape.  Tabular formats need a
fixed row/column shape and are only honoured for ``get`` results.
"""

from __future__ import annotations

from cv_api4.exceptions import ConfigurationError

DEFAULT_FORMAT: str = "json-pretty"

STRUCTURED_FORMATS: tuple[str, ...] = (
    "json-pretty",
    "json-strict",
    "pretty",
    "shell",
    "none",
)

TABULAR_FORMATS: tuple[str, ...] = (
    "table",
    "csv",
    "list",
)


def is_structured(name: str) -> bool:
    return name in STRUCTURED_FORMATS


def is_tabular(name: str) -> bool:
    return name in TABULAR_FORMATS


def require_known_format(name: str) -> str:
    """Return *name* unchanged or raise :class:`ConfigurationError`."""
    if is_structured(name) or is_tabular(name):
        return name
    known = ", ".join(STRUCTURED_FORMATS + TABULAR_FORMATS)
    raise ConfigurationError(
        f"Unknown output format: {name}",
        hint=f"Choose one of: {known}",
    )
