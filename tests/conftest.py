"""Shared pytest fixtures and configuration for the cv-api4 test suite.

Guidelines
----------
* No network access in any test.
* The remote call is replaced by a fake client at the ``Api4Client`` seam,
  or by ``httpx.MockTransport`` in transport tests.
* Core tests must be pure — no side effects.
* Tests must not depend on the caller's ``CV_*`` environment.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest


class FakeClient:
    """Records calls and returns a canned payload (or raises)."""

    def __init__(self, payload: Any = None, error: Exception | None = None) -> None:
        self.payload: Any = payload if payload is not None else {"values": [], "count": 0}
        self.error: Exception | None = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def call(self, entity: str, action: str, params: Mapping[str, Any]) -> Any:
        self.calls.append((entity, action, dict(params)))
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CV_OUTPUT",
        "CV_API4_URL",
        "CV_API_KEY",
        "CV_HTTP_TIMEOUT_SECONDS",
        "CV_USER_AGENT",
        "FORCE_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture()
def make_client() -> type[FakeClient]:
    return FakeClient


@pytest.fixture()
def fake_client() -> FakeClient:
    return FakeClient(
        payload={
            "values": [
                {"id": 1, "name": "Alice", "email": "alice@example.org"},
                {"id": 2, "name": "Bob", "email": None},
            ],
            "count": 2,
        },
    )
