"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

from cv_api4.core.output_router import EXIT_API_ERROR, EXIT_OK

SUCCESS: int = EXIT_OK
"""Clean exit — call succeeded, or dry-run."""

API_ERROR: int = EXIT_API_ERROR
"""The call executed but the API reported an error in its result."""

GENERAL_ERROR: int = 2
"""A known Api4CliError was caught (configuration, parse, capability,
transport).  Matches argparse's own usage-error status."""

UNEXPECTED_ERROR: int = 3
"""An unhandled exception escaped all known error boundaries."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
