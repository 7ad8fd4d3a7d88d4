"""
Dodgeball SDK
Server-side client for the Dodgeball risk-evaluation API.
"""

from dodgeball_sdk.async_client import AsyncDodgeball
from dodgeball_sdk.client import Dodgeball
from dodgeball_sdk.config import (
    BASE_CHECKPOINT_TIMEOUT_MS,
    MAX_RETRY_COUNT,
    MAX_TIMEOUT_MS,
    DodgeballConfig,
)
from dodgeball_sdk.errors import DodgeballError, DodgeballMissingParameterError
from dodgeball_sdk.models import (
    ApiVersion,
    CheckpointEvent,
    CheckpointResponse,
    CheckpointResponseOptions,
    ErrorDetail,
    TrackEvent,
    Verification,
    VerificationOutcome,
    VerificationStatus,
)

__all__ = [
    "ApiVersion",
    "AsyncDodgeball",
    "BASE_CHECKPOINT_TIMEOUT_MS",
    "CheckpointEvent",
    "CheckpointResponse",
    "CheckpointResponseOptions",
    "Dodgeball",
    "DodgeballConfig",
    "DodgeballError",
    "DodgeballMissingParameterError",
    "ErrorDetail",
    "MAX_RETRY_COUNT",
    "MAX_TIMEOUT_MS",
    "TrackEvent",
    "Verification",
    "VerificationOutcome",
    "VerificationStatus",
]
