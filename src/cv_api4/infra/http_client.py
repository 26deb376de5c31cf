"""httpx backed implementation of :class:`~cv_api4.core.protocols.Api4Client`.

This module is the **only** place in the codebase that imports ``httpx``.
All httpx exceptions are caught here and re-raised as
:class:`~cv_api4.exceptions.TransportError` — nothing raw escapes the
infrastructure boundary.

Wire format (APIv4 REST)::

    POST {api4_url}/{Entity}/{action}
    Content-Type: application/x-www-form-urlencoded

    params=<JSON-encoded parameter map>
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from cv_api4.config import AppSettings
from cv_api4.exceptions import TransportError

logger = logging.getLogger(__name__)


class HttpApi4Client:
    """Concrete :class:`Api4Client` speaking APIv4 over HTTP.

    Usage::

        client = HttpApi4Client("https://example.org/civicrm/ajax/api4", api_key="...")
        payload = client.call("Contact", "get", {"version": 4, "limit": 5})

    This class satisfies the :class:`~cv_api4.core.protocols.Api4Client`
    protocol structurally — no explicit inheritance required.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        user_agent: str = "cv-api4",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url: str = base_url.rstrip("/")
        self._api_key: str | None = api_key
        self._timeout: float = timeout
        self._user_agent: str = user_agent
        self._transport: httpx.BaseTransport | None = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self._user_agent,
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        if self._api_key:
            headers["X-Civi-Auth"] = f"Bearer {self._api_key}"
        return headers

    def endpoint(self, entity: str, action: str) -> str:
        return f"{self._base_url}/{entity}/{action}"

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def call(self, entity: str, action: str, params: Mapping[str, Any]) -> Any:
        """POST the call and return the decoded JSON body.

        A JSON body is returned even for HTTP error statuses: APIv4 puts
        ``error_message`` there, which the core reports as an
        application-level error.

        Raises
        ------
        TransportError
            On network failure, timeout, or a response body that is not
            JSON.
        """
        url = self.endpoint(entity, action)
        data = {"params": json.dumps(dict(params))}
        logger.debug("POST %s params=%s", url, data["params"])

        try:
            with httpx.Client(
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers(),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.post(url, data=data)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Timed out calling {entity}.{action}: {exc}",
                hint="Raise CV_HTTP_TIMEOUT_SECONDS or check the server.",
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Failed to call {entity}.{action}: {exc}",
                hint="Check CV_API4_URL and your network connection.",
            ) from exc

        logger.debug("HTTP %s from %s", response.status_code, url)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"HTTP {response.status_code} from {url} did not return JSON.",
                hint="Check that CV_API4_URL points at the APIv4 REST endpoint.",
            ) from exc


def build_client(settings: AppSettings) -> HttpApi4Client | None:
    """Return a client for the configured endpoint, or ``None`` if unset."""
    if not settings.api4_url:
        return None
    return HttpApi4Client(
        settings.api4_url,
        api_key=settings.api_key,
        timeout=settings.http_timeout_seconds,
        user_agent=settings.user_agent,
    )
