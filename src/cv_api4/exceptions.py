"""Custom exception hierarchy for cv-api4.

All exceptions that cross layer boundaries must inherit from
:class:`Api4CliError`.  Raw third-party exceptions (e.g. from httpx)
must NEVER propagate beyond the infrastructure layer — they must be
caught and re-raised as a typed subclass defined here.

Application-level failures reported *by* the API are not exceptions:
they travel inside :class:`~cv_api4.core.models.ApiResult` and only
affect the exit code.

Hierarchy
---------
Api4CliError
├── ConfigurationError
├── CapabilityUnavailableError
├── ParseError
├── TransportError
└── EnvironmentError
"""

from __future__ import annotations


class Api4CliError(Exception):
    """Base exception for all cv-api4 errors.

    Every fatal error condition must map to a subclass of this exception
    so that the CLI error boundary can render a clean message without
    leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Configuration ---------------------------------------------------------

class ConfigurationError(Api4CliError):
    """Raised for unknown ``--in``/``--out`` values or invalid settings."""


class CapabilityUnavailableError(Api4CliError):
    """Raised when no remote APIv4 endpoint is available for the call."""


# --- Input parsing ---------------------------------------------------------

class ParseError(Api4CliError):
    """Raised when a token, JSON document or ``+option`` cannot be parsed."""


# --- Remote call -----------------------------------------------------------

class TransportError(Api4CliError):
    """Raised when the remote call itself fails to execute."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(Api4CliError):
    """Raised when a required runtime dependency is not available."""
