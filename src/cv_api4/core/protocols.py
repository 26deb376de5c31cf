"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class Api4Client(Protocol):
    """Contract for the remote APIv4 calling capability.

    Any object that implements :meth:`call` with the correct signature
    satisfies this protocol structurally (no explicit inheritance
    required).
    """

    def call(self, entity: str, action: str, params: Mapping[str, Any]) -> Any:
        """Perform one ``entity.action`` call and return the decoded response.

        The returned value is typically a mapping with ``values`` (success)
        or ``error_message`` (application error).  Application errors must
        be *returned*, not raised.

        Raises
        ------
        TransportError
            When the call cannot be executed at all.
        """
        ...  # pragma: no cover
