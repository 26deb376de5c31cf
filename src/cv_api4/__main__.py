"""Allow ``python -m cv_api4`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m cv_api4`` behaves identically to the ``cv-api4``
console script.
"""

from __future__ import annotations

from cv_api4.cli.app import cli

if __name__ == "__main__":
    cli()
