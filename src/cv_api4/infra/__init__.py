"""Infrastructure layer — external system integration.

This layer wraps all interaction with the remote APIv4 endpoint.  Every
raw third-party exception must be caught here and re-raised as a
:class:`~cv_api4.exceptions.Api4CliError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from cv_api4.infra.http_client import HttpApi4Client, build_client

__all__: list[str] = [
    "HttpApi4Client",
    "build_client",
]
