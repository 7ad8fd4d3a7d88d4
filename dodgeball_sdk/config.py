"""
Dodgeball SDK — Configuration

Client configuration and the fixed constants of the checkpoint engine.
Environment variables are read when a DodgeballConfig is built.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dodgeball_sdk.models import ApiVersion

# ---------------------------------------------------------------------------
# Engine constants (milliseconds)
# ---------------------------------------------------------------------------
BASE_CHECKPOINT_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 10000
MAX_RETRY_COUNT = 3

DEFAULT_API_URL = "https://api.dodgeballhq.com/"

_FALSY = {"0", "false", "no", "off"}


def _env_api_url() -> str:
    return os.environ.get("DODGEBALL_API_URL", DEFAULT_API_URL)


def _env_api_version() -> ApiVersion:
    return ApiVersion.parse(os.environ.get("DODGEBALL_API_VERSION", "v1"))


def _env_is_enabled() -> bool:
    return os.environ.get("DODGEBALL_IS_ENABLED", "true").strip().lower() not in _FALSY


# ---------------------------------------------------------------------------
# Config model
# ---------------------------------------------------------------------------

class DodgeballConfig(BaseModel):
    """
    Settings for one Dodgeball client.

    Accepts snake_case field names or the camelCase aliases used by the
    other Dodgeball SDKs (apiUrl, apiVersion, isEnabled).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(default_factory=_env_api_url, alias="apiUrl", validate_default=True)
    api_version: ApiVersion = Field(default_factory=_env_api_version, alias="apiVersion")
    is_enabled: bool = Field(default_factory=_env_is_enabled, alias="isEnabled")
    base_checkpoint_timeout_ms: int = Field(
        default=BASE_CHECKPOINT_TIMEOUT_MS,
        gt=0,
        alias="baseCheckpointTimeoutMs",
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _normalize_api_url(cls, value: str | None) -> str:
        if not value:
            return DEFAULT_API_URL
        if not value.endswith("/"):
            value += "/"
        return value

    @field_validator("api_version", mode="before")
    @classmethod
    def _parse_api_version(cls, value) -> ApiVersion:
        if value is None:
            return ApiVersion.v1
        return ApiVersion.parse(value)
