"""
Dodgeball SDK — Data Models

Wire enums, the immutable verification / response values returned to
callers, and the typed inputs accepted by checkpoint() and event().
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ApiVersion(str, Enum):
    v1 = "v1"

    @classmethod
    def parse(cls, value: Any) -> "ApiVersion":
        """Unknown or missing versions fall back to v1."""
        try:
            return cls(value)
        except ValueError:
            return cls.v1


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    BLOCKED = "BLOCKED"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, value: Any) -> "VerificationStatus":
        """Unknown or missing statuses are treated as FAILED."""
        try:
            return cls(value)
        except ValueError:
            return cls.FAILED

    @property
    def is_terminal(self) -> bool:
        return self in (VerificationStatus.COMPLETE, VerificationStatus.FAILED)


class VerificationOutcome(str, Enum):
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    PENDING = "PENDING"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: Any) -> "VerificationOutcome":
        """Unknown or missing outcomes are treated as ERROR."""
        try:
            return cls(value)
        except ValueError:
            return cls.ERROR


# ---------------------------------------------------------------------------
# Response values
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """One error reported by the API or synthesised by the client."""
    model_config = ConfigDict(frozen=True)

    code: int = 0
    message: str = ""

    @classmethod
    def from_wire(cls, item: Any) -> "ErrorDetail":
        # The API sometimes reports errors as bare strings.
        if isinstance(item, dict):
            try:
                code = int(item.get("code") or 0)
            except (TypeError, ValueError):
                code = 0
            return cls(code=code, message=str(item.get("message") or ""))
        return cls(code=0, message=str(item))


def parse_errors(raw: Any) -> list[ErrorDetail]:
    if not raw:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    return [ErrorDetail.from_wire(item) for item in raw]


class Verification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    status: VerificationStatus = VerificationStatus.PENDING
    outcome: VerificationOutcome = VerificationOutcome.PENDING

    @classmethod
    def from_wire(cls, raw: Any, fallback_id: str = "") -> "Verification":
        """Rebuild a verification from a response body's "verification" field.

        A missing block, or a missing status / outcome inside it, becomes
        FAILED / ERROR.
        """
        if not isinstance(raw, dict):
            return cls(
                id=fallback_id,
                status=VerificationStatus.FAILED,
                outcome=VerificationOutcome.ERROR,
            )
        return cls(
            id=str(raw.get("id") or fallback_id),
            status=VerificationStatus.parse(raw.get("status")),
            outcome=VerificationOutcome.parse(raw.get("outcome")),
        )


class CheckpointResponse(BaseModel):
    """
    Final result of a checkpoint evaluation.

    Built once and returned; never updated afterwards. The predicate
    methods tell the caller what to do with it.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = False
    errors: list[ErrorDetail] = Field(default_factory=list)
    version: ApiVersion = ApiVersion.v1
    verification: Verification = Field(default_factory=Verification)
    timed_out: bool = Field(default=False, alias="isTimeout")

    def is_running(self) -> bool:
        return self.success and self.verification.status in (
            VerificationStatus.PENDING,
            VerificationStatus.BLOCKED,
        )

    def is_allowed(self) -> bool:
        return (
            self.success
            and self.verification.status == VerificationStatus.COMPLETE
            and self.verification.outcome == VerificationOutcome.APPROVED
        )

    def is_denied(self) -> bool:
        return self.success and self.verification.outcome == VerificationOutcome.DENIED

    def is_undecided(self) -> bool:
        return (
            self.success
            and self.verification.status == VerificationStatus.COMPLETE
            and self.verification.outcome == VerificationOutcome.PENDING
        )

    def has_error(self) -> bool:
        failed = (
            self.verification.status == VerificationStatus.FAILED
            and self.verification.outcome == VerificationOutcome.ERROR
        )
        return (not self.success and failed) or len(self.errors) > 0

    def is_timeout(self) -> bool:
        return not self.success and self.timed_out


def create_error_response(
    code: int = 500,
    message: str = "Unknown evaluation error",
    verification_id: str = "",
    timed_out: bool = False,
) -> CheckpointResponse:
    """Failed response carrying a single error and a FAILED / ERROR verification."""
    return CheckpointResponse(
        success=False,
        errors=[ErrorDetail(code=code, message=message)],
        version=ApiVersion.v1,
        verification=Verification(
            id=verification_id,
            status=VerificationStatus.FAILED,
            outcome=VerificationOutcome.ERROR,
        ),
        timed_out=timed_out,
    )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

def _drop_none(raw: Any) -> Any:
    if isinstance(raw, dict):
        return {k: v for k, v in raw.items() if v is not None}
    return raw


class CheckpointEvent(BaseModel):
    """The action being evaluated. ``data`` is passed through untouched."""
    model_config = ConfigDict(frozen=True)

    ip: Optional[str] = None
    data: Any = Field(default_factory=dict)

    @classmethod
    def coerce(cls, raw: Any) -> Optional["CheckpointEvent"]:
        if raw is None or isinstance(raw, cls):
            return raw
        return cls.model_validate(_drop_none(raw))


class TrackEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = ""
    data: Any = Field(default_factory=dict)
    event_time: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        alias="eventTime",
    )

    @classmethod
    def coerce(cls, raw: Any) -> Optional["TrackEvent"]:
        if raw is None or isinstance(raw, cls):
            return raw
        raw = _drop_none(raw)
        if isinstance(raw, dict) and not raw.get("eventTime") and not raw.get("event_time"):
            raw.pop("eventTime", None)
            raw.pop("event_time", None)
        return cls.model_validate(raw)


class CheckpointResponseOptions(BaseModel):
    """
    Caller options for one checkpoint.

    sync:    forwarded to the API as-is
    timeout: polling budget in milliseconds; 0 means no budget
    webhook: URL the API notifies on resolution
    """
    model_config = ConfigDict(frozen=True)

    sync: bool = True
    timeout: int = 0
    webhook: str = ""

    @classmethod
    def coerce(cls, raw: Any) -> "CheckpointResponseOptions":
        if raw is None:
            return cls()
        if isinstance(raw, cls):
            return raw
        return cls.model_validate(_drop_none(raw))
