"""
Dodgeball SDK Test Configuration
Scripted transports, canned API bodies and a no-op sleep for every test.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

import dodgeball_sdk.async_client as async_client_module
import dodgeball_sdk.client as client_module
from dodgeball_sdk import AsyncDodgeball, Dodgeball

API_URL = "https://api.example.com"
SECRET_KEY = "secret_key"

EVENT = {
    "ip": "127.0.0.1",
    "data": {"key": "value", "nested": {"key": "nestedValue"}},
}

USAGE_LIMIT_ERROR = (
    "You have exceeded your usage limits for this billing cycle. Please go to "
    "the billing page at https://app.dodgeballhq.com/settings?tab=usage to "
    "resolve this issue."
)


# ---------------------------------------------------------------------------
# Canned bodies
# ---------------------------------------------------------------------------

def verification_body(
    status: str = "PENDING",
    outcome: str = "PENDING",
    verification_id: str = "verification_id",
) -> dict[str, Any]:
    return {
        "success": True,
        "errors": [],
        "version": "v1",
        "verification": {"id": verification_id, "status": status, "outcome": outcome},
    }


def rejected_body(errors: list | None = None) -> dict[str, Any]:
    return {
        "success": False,
        "errors": errors or [],
        "version": "v1",
        "verification": None,
    }


# ---------------------------------------------------------------------------
# Scripted API
# ---------------------------------------------------------------------------

class ScriptedApi:
    """
    Replays a fixed script of replies and records every request.

    Script items:
        dict            -> 200 response with that JSON body
        httpx.Response  -> returned as-is
        exception class -> raised with message "timed out" / "connection refused"
    """

    def __init__(self, script: list):
        self.script = list(script)
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.script.pop(0)
        if isinstance(item, type) and issubclass(item, Exception):
            message = "timed out" if issubclass(item, httpx.TimeoutException) else "connection refused"
            raise item(message, request=request)
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    @property
    def methods(self) -> list[str]:
        return [r.method for r in self.requests]

    def body(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def scripted():
    """Factory: scripted(script, **config) -> (client, api)."""
    clients = []

    def _make(script: list, **config):
        api = ScriptedApi(script)
        client = Dodgeball(SECRET_KEY, {"apiUrl": API_URL, **config}, transport=api.transport)
        clients.append(client)
        return client, api

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def scripted_async():
    def _make(script: list, **config):
        api = ScriptedApi(script)
        client = AsyncDodgeball(SECRET_KEY, {"apiUrl": API_URL, **config}, transport=api.transport)
        return client, api

    return _make


@pytest.fixture(autouse=True)
def sleeps(monkeypatch) -> list[float]:
    """Replace poll sleeps with a recorder (seconds)."""
    slept: list[float] = []

    async def fake_async_sleep(seconds: float) -> None:
        slept.append(seconds)

    monkeypatch.setattr(client_module.time, "sleep", slept.append)
    monkeypatch.setattr(async_client_module.asyncio, "sleep", fake_async_sleep)
    return slept
