"""
Checkpoint Engine -- submit, poll, classify.

Turns the API's eventually-consistent verification into a single
CheckpointResponse. The classes here hold the counters and decisions of
one checkpoint() call and never perform I/O themselves; the blocking and
async clients feed them responses and sleep when told to.

Lifecycle as seen by the caller:

    SUBMITTED -> (POLLING)* -> RESOLVED | FAILED | TIMED_OUT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import httpx

from dodgeball_sdk.config import MAX_RETRY_COUNT, MAX_TIMEOUT_MS
from dodgeball_sdk.errors import DodgeballMissingParameterError
from dodgeball_sdk.models import (
    ApiVersion,
    CheckpointEvent,
    CheckpointResponse,
    CheckpointResponseOptions,
    ErrorDetail,
    Verification,
    VerificationOutcome,
    VerificationStatus,
    create_error_response,
    parse_errors,
)

logger = logging.getLogger("dodgeball_sdk.checkpoint")

DISABLED_VERIFICATION_ID = "DISABLED"
TIMEOUT_VERIFICATION_ID = "DODGEBALL_TIMEOUT"
TIMEOUT_ERROR_CODE = 503
TIMEOUT_ERROR_MESSAGE = "Service Unavailable: Maximum retry count exceeded"

_OK_STATUS_CODES = (200, 201)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CheckpointRequest:
    checkpoint_name: str
    event: CheckpointEvent
    source_token: str = ""
    session_id: str = ""
    user_id: str = ""
    use_verification_id: str = ""
    options: CheckpointResponseOptions = field(default_factory=CheckpointResponseOptions)


def build_checkpoint_request(
    checkpoint_name: Optional[str],
    event: CheckpointEvent | Mapping[str, Any] | None,
    source_token: Optional[str] = None,
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    use_verification_id: Optional[str] = None,
    options: CheckpointResponseOptions | Mapping[str, Any] | None = None,
) -> CheckpointRequest:
    """Validate checkpoint() arguments.

    Raises:
        DodgeballMissingParameterError: checkpoint name, event, event ip,
            or both session id and source token are missing.
    """
    if not checkpoint_name:
        raise DodgeballMissingParameterError("checkpointName", checkpoint_name)

    parsed_event = CheckpointEvent.coerce(event)
    if parsed_event is None:
        raise DodgeballMissingParameterError("event", event)
    if not parsed_event.ip:
        raise DodgeballMissingParameterError("event.ip", parsed_event.ip)

    if not session_id and not source_token:
        raise DodgeballMissingParameterError("sessionId", session_id)

    return CheckpointRequest(
        checkpoint_name=checkpoint_name,
        event=parsed_event,
        source_token=source_token or "",
        session_id=session_id or "",
        user_id=user_id or "",
        use_verification_id=use_verification_id or "",
        options=CheckpointResponseOptions.coerce(options),
    )


def disabled_response() -> CheckpointResponse:
    return CheckpointResponse(
        success=True,
        errors=[],
        version=ApiVersion.v1,
        verification=Verification(
            id=DISABLED_VERIFICATION_ID,
            status=VerificationStatus.COMPLETE,
            outcome=VerificationOutcome.APPROVED,
        ),
    )


def timeout_response(verification_id: str) -> CheckpointResponse:
    return create_error_response(
        TIMEOUT_ERROR_CODE,
        TIMEOUT_ERROR_MESSAGE,
        verification_id=verification_id,
        timed_out=True,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_timeout_error(error: Optional[BaseException]) -> bool:
    if error is None:
        return False
    if isinstance(error, httpx.TimeoutException):
        return True
    return "timed out" in str(error).lower()


def decode_body(response: httpx.Response) -> Optional[dict]:
    """JSON object body, or None when the body is not a JSON object."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def next_interval(current_ms: int, ceiling_ms: int = MAX_TIMEOUT_MS) -> int:
    """Double the poll interval, never past the ceiling and never downwards."""
    if current_ms >= ceiling_ms:
        return current_ms
    return min(2 * current_ms, ceiling_ms)


@dataclass(frozen=True)
class PollPlan:
    """
    Timing decisions derived from the caller's requested timeout.

    A trivial (<= 0) or large (> 5x base) timeout means the engine polls,
    starting from the base interval. Anything in between is waited out in
    a single interval equal to the requested timeout.
    """
    requested_timeout_ms: int
    trivial_timeout: bool
    must_poll: bool
    initial_interval_ms: int

    @classmethod
    def from_options(cls, options: CheckpointResponseOptions, base_ms: int) -> "PollPlan":
        requested = options.timeout or 0
        trivial = requested <= 0
        large = requested > 5 * base_ms
        must_poll = trivial or large
        return cls(
            requested_timeout_ms=requested,
            trivial_timeout=trivial,
            must_poll=must_poll,
            initial_interval_ms=base_ms if must_poll else requested,
        )

    @property
    def request_timeout_seconds(self) -> float:
        return self.initial_interval_ms / 1000

    def internal_options(self, options: CheckpointResponseOptions) -> dict[str, Any]:
        return {
            "sync": options.sync,
            "timeout": self.initial_interval_ms,
            "webhook": options.webhook or "",
        }


# ---------------------------------------------------------------------------
# Submit phase
# ---------------------------------------------------------------------------

class SubmitAttempts:
    """Up to MAX_RETRY_COUNT POSTs of one checkpoint."""

    def __init__(self, checkpoint_name: str):
        self.checkpoint_name = checkpoint_name
        self.attempts = 0
        self.response: Optional[httpx.Response] = None
        self.body: Optional[dict] = None
        self.last_error: Optional[BaseException] = None

    def should_attempt(self) -> bool:
        if self.attempts >= MAX_RETRY_COUNT:
            return False
        return self.body is None or not self.body.get("success")

    def record_response(self, response: httpx.Response) -> None:
        self.attempts += 1
        self.response = response
        self.body = decode_body(response)
        if not (self.body or {}).get("success"):
            logger.warning(
                "Checkpoint %s submit attempt %d rejected (HTTP %d)",
                self.checkpoint_name, self.attempts, response.status_code,
            )

    def record_error(self, error: BaseException) -> None:
        self.attempts += 1
        self.last_error = error
        logger.warning(
            "Checkpoint %s submit attempt %d failed: %s",
            self.checkpoint_name, self.attempts, error,
        )

    @property
    def succeeded(self) -> bool:
        return (
            self.response is not None
            and self.response.status_code in _OK_STATUS_CODES
            and self.body is not None
            and bool(self.body.get("success"))
        )

    def failure_response(self) -> CheckpointResponse:
        """Response for a submit phase that did not succeed."""
        if self.response is None:
            if is_timeout_error(self.last_error):
                logger.warning("Checkpoint %s timed out after %d attempts",
                               self.checkpoint_name, self.attempts)
                return timeout_response(TIMEOUT_VERIFICATION_ID)
            if self.last_error is not None:
                return create_error_response(500, str(self.last_error) or "Unknown evaluation error")
            return create_error_response()

        if self.response.status_code not in _OK_STATUS_CODES:
            return create_error_response(
                self.response.status_code,
                self.response.reason_phrase or "Unknown evaluation error",
            )

        body = self.body or {}
        return CheckpointResponse(
            success=False,
            errors=parse_errors(body.get("errors")),
            version=ApiVersion.parse(body.get("version")),
            verification=Verification.from_wire(body.get("verification")),
            timed_out=False,
        )


# ---------------------------------------------------------------------------
# Poll phase
# ---------------------------------------------------------------------------

class PollLoop:
    """
    Polls GET /verification/{id} until resolved, out of budget, or out of
    retries.

    Two counters are kept apart: num_repeats counts successful polls,
    num_failures counts failed polls (transport errors,
    rejections, bodies without a status). Only num_failures is capped.

    The budget is the caller's requested timeout compared against the
    total time slept so far. A trivial timeout means no budget.
    """

    def __init__(self, plan: PollPlan, submit_body: dict):
        self.plan = plan
        verification = submit_body.get("verification")
        if not isinstance(verification, dict):
            verification = {}
        self.verification_id = str(verification.get("id") or "")
        status = verification.get("status") or ""
        self.resolved = status != VerificationStatus.PENDING.value

        self.interval_ms = plan.initial_interval_ms
        self.elapsed_ms = 0
        self.intervals: list[int] = []
        self.num_repeats = 0
        self.num_failures = 0
        self.last_body = submit_body
        self.last_errors: list[ErrorDetail] = []
        self.last_error_timed_out = False

    def within_budget(self) -> bool:
        if self.plan.trivial_timeout:
            return True
        return self.elapsed_ms < self.plan.requested_timeout_ms

    def should_poll(self) -> bool:
        return (
            self.within_budget()
            and not self.resolved
            and self.num_failures < MAX_RETRY_COUNT
        )

    def next_sleep(self) -> float:
        """Seconds to sleep before the next poll; advances the backoff."""
        interval = self.interval_ms
        self.intervals.append(interval)
        self.elapsed_ms += interval
        self.interval_ms = next_interval(interval)
        logger.debug("Verification %s: sleeping %d ms before poll",
                     self.verification_id, interval)
        return interval / 1000

    def record_response(self, response: httpx.Response) -> None:
        body = decode_body(response)
        if body is not None and body.get("success"):
            verification = body.get("verification")
            status = verification.get("status") if isinstance(verification, dict) else ""
            if status:
                self.resolved = status != VerificationStatus.PENDING.value
                self.num_repeats += 1
                self.last_body = body
                logger.debug("Verification %s: poll %d returned %s",
                             self.verification_id, self.num_repeats, status)
            else:
                self.num_failures += 1
                logger.warning("Verification %s: poll returned no status",
                               self.verification_id)
            return

        errors = parse_errors((body or {}).get("errors"))
        if not errors and response.status_code not in _OK_STATUS_CODES:
            errors = [ErrorDetail(code=response.status_code,
                                  message=response.reason_phrase or "")]
        self.last_errors = errors
        self.last_error_timed_out = False
        self.num_failures += 1
        logger.warning("Verification %s: poll rejected (HTTP %d, %d errors)",
                       self.verification_id, response.status_code, len(errors))

    def record_error(self, error: BaseException) -> None:
        self.num_failures += 1
        self.last_error_timed_out = is_timeout_error(error)
        if not self.last_error_timed_out:
            self.last_errors = [ErrorDetail(code=500, message=str(error))]
        logger.warning("Verification %s: poll failed: %s",
                       self.verification_id, error)

    def result(self) -> CheckpointResponse:
        if self.num_failures >= MAX_RETRY_COUNT:
            if self.last_error_timed_out:
                logger.warning("Verification %s: polling timed out", self.verification_id)
                return timeout_response(self.verification_id)
            if self.last_errors:
                return CheckpointResponse(
                    success=False,
                    errors=self.last_errors,
                    version=ApiVersion.v1,
                    verification=Verification(
                        id=self.verification_id,
                        status=VerificationStatus.FAILED,
                        outcome=VerificationOutcome.ERROR,
                    ),
                    timed_out=False,
                )
            logger.warning("Verification %s: retries exhausted without an error",
                           self.verification_id)
            return timeout_response(self.verification_id)

        verification = Verification.from_wire(
            self.last_body.get("verification"),
            fallback_id=self.verification_id,
        )
        # A FAILED status or ERROR outcome is never reported as a success.
        failed = (
            verification.status == VerificationStatus.FAILED
            or verification.outcome == VerificationOutcome.ERROR
        )
        errors: list[ErrorDetail] = []
        if failed:
            raw = self.last_body.get("verification")
            raw = raw if isinstance(raw, dict) else {}
            message = (
                f"Verification resolved as {raw.get('status') or 'unknown'}"
                f"/{raw.get('outcome') or 'unknown'}"
            )
            errors = [ErrorDetail(code=500, message=message)]
            logger.warning("Verification %s: %s", self.verification_id, message)
        return CheckpointResponse(
            success=not failed,
            errors=errors,
            version=ApiVersion.v1,
            verification=verification,
            timed_out=False,
        )
