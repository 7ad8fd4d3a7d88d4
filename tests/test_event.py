"""
Event Reporter tests: POST /track, fire-and-forget.
"""

from __future__ import annotations

import httpx
import pytest

from dodgeball_sdk import DodgeballMissingParameterError, TrackEvent

from conftest import API_URL


def test_event_posts_to_track(scripted):
    client, api = scripted([{"success": True, "errors": []}])
    delivered = client.event(
        {"type": "EVENT_NAME", "data": {"key": "value", "nested": {"key": "nestedValue"}}, "eventTime": 1234},
        source_token="source_token",
        user_id="user_id",
        session_id="session_id",
    )

    assert delivered is True
    assert len(api.requests) == 1
    request = api.requests[0]
    assert request.method == "POST"
    assert str(request.url) == f"{API_URL}/v1/track"
    assert request.headers["Dodgeball-Secret-Key"] == "secret_key"
    assert request.headers["Dodgeball-Source-Token"] == "source_token"
    assert request.headers["Dodgeball-Customer-Id"] == "user_id"
    assert request.headers["Dodgeball-Session-Id"] == "session_id"
    assert "Dodgeball-Verification-Id" not in request.headers
    assert api.body(0) == {
        "type": "EVENT_NAME",
        "eventTime": 1234,
        "data": {"key": "value", "nested": {"key": "nestedValue"}},
    }


def test_event_accepts_model(scripted):
    client, api = scripted([{"success": True}])
    assert client.event(TrackEvent(type="PAGE_VIEW"), session_id="s") is True
    body = api.body(0)
    assert body["type"] == "PAGE_VIEW"
    assert body["data"] == {}
    assert isinstance(body["eventTime"], int)


def test_event_rejected_status(scripted):
    client, _ = scripted([httpx.Response(401, json={"success": False})])
    assert client.event({"type": "PAGE_VIEW"}) is False


def test_event_transport_error(scripted):
    client, api = scripted([httpx.ConnectError])
    assert client.event({"type": "PAGE_VIEW"}) is False
    assert len(api.requests) == 1


def test_event_disabled_sends_nothing(scripted):
    client, api = scripted([], isEnabled=False)
    assert client.event({"type": "PAGE_VIEW"}) is True
    assert api.requests == []


@pytest.mark.parametrize("event", [None, {}, {"type": ""}])
def test_event_requires_type(scripted, event):
    client, api = scripted([])
    with pytest.raises(DodgeballMissingParameterError):
        client.event(event)
    assert api.requests == []
