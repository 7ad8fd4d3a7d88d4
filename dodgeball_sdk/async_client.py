"""
Dodgeball SDK — Async Client
Same protocol as Dodgeball, on httpx.AsyncClient. Waits between polls
with asyncio.sleep so the event loop keeps running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from dodgeball_sdk.builder import new_request_id
from dodgeball_sdk.checkpoint import (
    PollLoop,
    SubmitAttempts,
    build_checkpoint_request,
    disabled_response,
)
from dodgeball_sdk.client import BaseDodgeball, ConfigLike
from dodgeball_sdk.models import (
    CheckpointEvent,
    CheckpointResponse,
    CheckpointResponseOptions,
    TrackEvent,
)

logger = logging.getLogger("dodgeball_sdk.async_client")


class AsyncDodgeball(BaseDodgeball):
    """
    Async client for the Dodgeball API.

    Same checkpoint() and event() contract as Dodgeball, awaited on an
    httpx.AsyncClient.
    """

    def __init__(
        self,
        secret_key: str,
        config: ConfigLike = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(secret_key, config)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(transport=transport)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncDodgeball":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def event(
        self,
        event: TrackEvent | Mapping[str, Any] | None = None,
        source_token: Optional[str] = "",
        user_id: Optional[str] = "",
        session_id: Optional[str] = "",
    ) -> bool:
        """Report a tracking event; see Dodgeball.event."""
        track_event = self._track_event(event)
        if not self.is_enabled:
            logger.info("Dodgeball disabled; event %s not sent", track_event.type)
            return True

        try:
            resp = await self._client.post(
                self.builder.url("track"),
                headers=self.builder.headers("", source_token, user_id, session_id),
                json=self.builder.track_body(track_event),
            )
        except httpx.HTTPError as exc:
            logger.warning("Event %s not delivered: %s", track_event.type, exc)
            return False

        if not resp.is_success:
            logger.warning("Event %s rejected (HTTP %d)", track_event.type, resp.status_code)
        return resp.is_success

    async def checkpoint(
        self,
        checkpoint_name: Optional[str],
        event: CheckpointEvent | Mapping[str, Any] | None,
        source_token: Optional[str] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        use_verification_id: Optional[str] = None,
        options: CheckpointResponseOptions | Mapping[str, Any] | None = None,
    ) -> CheckpointResponse:
        """Evaluate a checkpoint; see Dodgeball.checkpoint."""
        request = build_checkpoint_request(
            checkpoint_name, event, source_token, session_id,
            user_id, use_verification_id, options,
        )
        if not self.is_enabled:
            logger.info("Dodgeball disabled; checkpoint %s approved locally",
                        request.checkpoint_name)
            return disabled_response()

        plan = self._plan(request.options)
        request_id = new_request_id()
        submit = SubmitAttempts(request.checkpoint_name)
        body = self.builder.checkpoint_body(
            request.checkpoint_name, request.event, plan.internal_options(request.options)
        )
        headers = self.builder.headers(
            request.use_verification_id, request.source_token,
            request.user_id, request.session_id, request_id,
        )

        while submit.should_attempt():
            try:
                resp = await self._client.post(
                    self.builder.url("checkpoint"),
                    headers=headers,
                    json=body,
                    timeout=plan.request_timeout_seconds,
                )
            except httpx.HTTPError as exc:
                submit.record_error(exc)
            else:
                submit.record_response(resp)

        if not submit.succeeded:
            return submit.failure_response()

        poll = PollLoop(plan, submit.body)
        poll_headers = self.builder.headers(
            request.use_verification_id, request.source_token,
            request.user_id, request.session_id,
        )
        poll_url = self.builder.url(f"verification/{poll.verification_id}")

        while poll.should_poll():
            await asyncio.sleep(poll.next_sleep())
            try:
                resp = await self._client.get(poll_url, headers=poll_headers)
            except httpx.HTTPError as exc:
                poll.record_error(exc)
            else:
                poll.record_response(resp)

        return poll.result()
