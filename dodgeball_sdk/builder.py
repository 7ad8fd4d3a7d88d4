"""
Dodgeball SDK — Request Builder
Assembles URLs, headers and JSON bodies for the Dodgeball API.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

from dodgeball_sdk.config import DodgeballConfig
from dodgeball_sdk.models import CheckpointEvent, TrackEvent

SECRET_KEY_HEADER = "Dodgeball-Secret-Key"
VERIFICATION_ID_HEADER = "Dodgeball-Verification-Id"
SOURCE_TOKEN_HEADER = "Dodgeball-Source-Token"
CUSTOMER_ID_HEADER = "Dodgeball-Customer-Id"
SESSION_ID_HEADER = "Dodgeball-Session-Id"
REQUEST_ID_HEADER = "Dodgeball-Request-Id"

_EMPTY_MARKERS = {"null", "undefined"}


def is_present(value: Optional[str]) -> bool:
    """False for None, "" and the literal strings "null" / "undefined"."""
    return bool(value) and value not in _EMPTY_MARKERS


def new_request_id() -> str:
    return str(uuid4())


class RequestBuilder:
    """Holds the secret key and config; every method is side-effect free."""

    def __init__(self, secret_key: str, config: DodgeballConfig):
        self._secret_key = secret_key
        self.config = config

    def url(self, endpoint: str = "") -> str:
        return f"{self.config.api_url}{self.config.api_version.value}/{endpoint}"

    def headers(
        self,
        verification_id: Optional[str] = "",
        source_token: Optional[str] = "",
        customer_id: Optional[str] = "",
        session_id: Optional[str] = "",
        request_id: Optional[str] = None,
    ) -> dict[str, str]:
        headers = {
            SECRET_KEY_HEADER: self._secret_key,
            "Content-Type": "application/json",
        }
        optional = (
            (VERIFICATION_ID_HEADER, verification_id),
            (SOURCE_TOKEN_HEADER, source_token),
            (CUSTOMER_ID_HEADER, customer_id),
            (SESSION_ID_HEADER, session_id),
            (REQUEST_ID_HEADER, request_id),
        )
        for name, value in optional:
            if is_present(value):
                headers[name] = value
        return headers

    @staticmethod
    def checkpoint_body(
        checkpoint_name: str,
        event: CheckpointEvent,
        internal_options: dict[str, Any],
    ) -> dict[str, Any]:
        return {
            "checkpointName": checkpoint_name,
            "event": {
                "type": checkpoint_name,
                "ip": event.ip,
                "data": event.data,
            },
            "options": internal_options,
        }

    @staticmethod
    def track_body(event: TrackEvent) -> dict[str, Any]:
        return {
            "type": event.type,
            "eventTime": event.event_time,
            "data": event.data,
        }
