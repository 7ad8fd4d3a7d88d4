"""
Dodgeball SDK — Exceptions

Only malformed input is raised. Transport failures, remote rejections and
timeouts come back as data on CheckpointResponse.
"""

from __future__ import annotations

from typing import Any


class DodgeballError(Exception):
    """Base class for errors raised by the SDK."""


class DodgeballMissingParameterError(DodgeballError, ValueError):
    """A required parameter was absent or empty."""

    def __init__(self, parameter_name: str, parameter_value: Any = None):
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value
        super().__init__(
            f"Missing required parameter: {parameter_name} "
            f"with value: {'' if parameter_value is None else parameter_value}"
        )
