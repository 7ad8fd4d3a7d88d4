"""
Dodgeball SDK — Client
Blocking client for the Dodgeball risk-evaluation API.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

import httpx

from dodgeball_sdk.builder import RequestBuilder, new_request_id
from dodgeball_sdk.checkpoint import (
    PollLoop,
    PollPlan,
    SubmitAttempts,
    build_checkpoint_request,
    disabled_response,
)
from dodgeball_sdk.config import DodgeballConfig
from dodgeball_sdk.errors import DodgeballMissingParameterError
from dodgeball_sdk.models import (
    CheckpointEvent,
    CheckpointResponse,
    CheckpointResponseOptions,
    TrackEvent,
    create_error_response,
)

logger = logging.getLogger("dodgeball_sdk.client")

ConfigLike = Union[DodgeballConfig, Mapping[str, Any], None]


def resolve_config(config: ConfigLike) -> DodgeballConfig:
    if config is None:
        return DodgeballConfig()
    if isinstance(config, DodgeballConfig):
        return config
    return DodgeballConfig.model_validate(
        {k: v for k, v in config.items() if v is not None}
    )


class BaseDodgeball:
    """Shared construction for the blocking and async clients."""

    def __init__(self, secret_key: str, config: ConfigLike = None):
        if not secret_key:
            raise DodgeballMissingParameterError("secretKey", secret_key)
        self.config = resolve_config(config)
        self.builder = RequestBuilder(secret_key, self.config)

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def construct_api_url(self, endpoint: str = "") -> str:
        return self.builder.url(endpoint)

    def construct_api_headers(
        self,
        verification_id: Optional[str] = "",
        source_token: Optional[str] = "",
        customer_id: Optional[str] = "",
        session_id: Optional[str] = "",
        request_id: Optional[str] = None,
    ) -> dict[str, str]:
        return self.builder.headers(
            verification_id, source_token, customer_id, session_id, request_id
        )

    @staticmethod
    def create_error_response(
        code: int = 500,
        message: str = "Unknown evaluation error",
    ) -> CheckpointResponse:
        return create_error_response(code, message)

    def _plan(self, options: CheckpointResponseOptions) -> PollPlan:
        return PollPlan.from_options(options, self.config.base_checkpoint_timeout_ms)

    @staticmethod
    def _track_event(event: TrackEvent | Mapping[str, Any] | None) -> TrackEvent:
        parsed = TrackEvent.coerce(event)
        if parsed is None or not parsed.type:
            raise DodgeballMissingParameterError("event.type", getattr(parsed, "type", None))
        return parsed


class Dodgeball(BaseDodgeball):
    """
    Blocking client for the Dodgeball API.

    checkpoint() submits an event for evaluation and waits, within the
    caller's timeout, for the verification to resolve. event() reports a
    tracking event and does not wait for any decision.
    """

    def __init__(
        self,
        secret_key: str,
        config: ConfigLike = None,
        *,
        http_client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            secret_key: Dodgeball secret API key
            config: DodgeballConfig or a mapping of its fields
            http_client: Pre-built httpx.Client; left open on close()
            transport: httpx transport for a client built here (e.g. MockTransport)
        """
        super().__init__(secret_key, config)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(transport=transport)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Dodgeball":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def event(
        self,
        event: TrackEvent | Mapping[str, Any] | None = None,
        source_token: Optional[str] = "",
        user_id: Optional[str] = "",
        session_id: Optional[str] = "",
    ) -> bool:
        """
        Report a tracking event via POST /track.

        Returns:
            True when the API accepted the event, False otherwise. Always
            True without a request when the client is disabled.
        """
        track_event = self._track_event(event)
        if not self.is_enabled:
            logger.info("Dodgeball disabled; event %s not sent", track_event.type)
            return True

        try:
            resp = self._client.post(
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

    def checkpoint(
        self,
        checkpoint_name: Optional[str],
        event: CheckpointEvent | Mapping[str, Any] | None,
        source_token: Optional[str] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        use_verification_id: Optional[str] = None,
        options: CheckpointResponseOptions | Mapping[str, Any] | None = None,
    ) -> CheckpointResponse:
        """
        Evaluate a checkpoint and wait for the verification to resolve.

        Args:
            checkpoint_name: Name of the checkpoint (e.g. "LOGIN")
            event: CheckpointEvent or mapping with "ip" and optional "data"
            source_token: Client-side source token
            session_id: Session identifier; one of this or source_token is required
            user_id: Customer identifier, sent as Dodgeball-Customer-Id
            use_verification_id: Existing verification to continue
            options: CheckpointResponseOptions or mapping (sync, timeout, webhook)

        Returns:
            CheckpointResponse. Failures and timeouts are reported on the
            response, not raised.

        Raises:
            DodgeballMissingParameterError: required input is missing.
        """
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
            logger.debug("Submitting checkpoint %s (attempt %d, request %s)",
                         request.checkpoint_name, submit.attempts + 1, request_id)
            try:
                resp = self._client.post(
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
            time.sleep(poll.next_sleep())
            try:
                resp = self._client.get(poll_url, headers=poll_headers)
            except httpx.HTTPError as exc:
                poll.record_error(exc)
            else:
                poll.record_response(resp)

        return poll.result()
