"""cv-api4 — command-line adapter for APIv4 ``Entity.action`` calls.

Turns terse ``key=value`` / ``+option`` arguments (or piped JSON) into a
single APIv4 request and renders the result as structured data or a table.
"""

from cv_api4.version import __version__

__all__: list[str] = ["__version__"]
