"""Core invoker — performs the single remote ``Entity.action`` call.

The remote capability is an :class:`~cv_api4.core.protocols.Api4Client`
injected at construction time.  ``None`` means "not available", which
surfaces as :class:`~cv_api4.exceptions.CapabilityUnavailableError`
instead of a runtime probe.

Guarantees
----------
* At most one call per :meth:`Invoker.invoke`.
* Dry-run never touches the client.
* Only :class:`~cv_api4.exceptions.Api4CliError` subclasses escape.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from cv_api4.core.models import ApiResult, InvocationRequest
from cv_api4.core.protocols import Api4Client
from cv_api4.exceptions import Api4CliError, CapabilityUnavailableError, TransportError

logger = logging.getLogger(__name__)


class Invoker:
    """Drive one remote call.

    Parameters
    ----------
    client:
        Any object satisfying the :class:`Api4Client` protocol, or ``None``
        when no endpoint is configured.
    on_preview:
        Optional callable receiving the request whenever a preview is due
        (dry-run or elevated verbosity).
    """

    def __init__(
        self,
        client: Api4Client | None,
        *,
        on_preview: Callable[[InvocationRequest], None] | None = None,
    ) -> None:
        self._client: Api4Client | None = client
        self._on_preview = on_preview

    def require_client(self) -> Api4Client:
        """Return the client or raise :class:`CapabilityUnavailableError`."""
        if self._client is None:
            raise CapabilityUnavailableError(
                "Please enable APIv4 before running APIv4 commands.",
                hint="Set CV_API4_URL to the APIv4 REST endpoint "
                "(e.g. https://example.org/civicrm/ajax/api4).",
            )
        return self._client

    def invoke(
        self,
        request: InvocationRequest,
        *,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> ApiResult | None:
        """Perform the call, or return ``None`` on dry-run.

        Raises
        ------
        CapabilityUnavailableError
            When no client is configured and a real call is required.
        TransportError
            When the call fails to execute.
        """
        if (dry_run or verbose) and self._on_preview is not None:
            self._on_preview(request)
        if dry_run:
            logger.debug("Dry run: skipping %s.%s", request.entity, request.action)
            return None

        client = self.require_client()
        logger.debug("Calling %s.%s", request.entity, request.action)
        try:
            payload = client.call(request.entity, request.action, request.params_dict())
        except Api4CliError:
            # Already typed; propagate unchanged.
            raise
        except Exception as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        result = ApiResult.from_payload(payload)
        if result.is_error():
            logger.debug("API reported an error: %s", result.error_message)
        return result
