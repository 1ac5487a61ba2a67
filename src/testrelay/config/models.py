#
# config/models.py
#
"""
Attrs-based data models for testrelay configuration structure.
"""

import logging
from typing import Any

from attrs import define, field

DEFAULT_SERVER_URL = "https://app.codecrafters.io"
DEFAULT_SUPPORT_CONTACT = "hello@codecrafters.io"


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_non_negative(inst: Any, attr: Any, value: float) -> None:
    if not isinstance(value, int | float) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Field '{attr.name}' must be a non-negative number, got {value}")


def _validate_optional_timeout(inst: Any, attr: Any, value: float | None) -> None:
    if value is not None:
        _validate_non_negative(inst, attr, value)


def _validate_server_url(inst: Any, attr: Any, value: str) -> None:
    if not isinstance(value, str) or not value.startswith(("http://", "https://")):
        raise ValueError(f"Field '{attr.name}' must be an http(s) URL, got '{value}'")


def _strip_trailing_slash(value: Any) -> Any:
    return value.rstrip("/") if isinstance(value, str) else value


# --- Retry Policy ---
@define(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff: delay doubles after each attempt, up to max_delay."""

    max_attempts: int = field(validator=_validate_positive_int)
    initial_delay: float = field(validator=_validate_non_negative)
    max_delay: float = field(validator=_validate_non_negative)


BUILD_RETRY_POLICY = RetryPolicy(max_attempts=11, initial_delay=0.1, max_delay=2.0)
RUN_RETRY_POLICY = RetryPolicy(max_attempts=5, initial_delay=0.5, max_delay=2.0)


# --- Component Config Models ---
@define(frozen=True, slots=True)
class ClientConfig:
    """Settings for the remote service client."""

    server_url: str = field(
        default=DEFAULT_SERVER_URL,
        converter=_strip_trailing_slash,
        validator=_validate_server_url,
    )
    # None disables per-request timeouts; polling is bounded by the retry budget.
    request_timeout: float | None = field(default=None, validator=_validate_optional_timeout)


@define(frozen=True, slots=True)
class RunnerConfig:
    """Settings for the build/test orchestration."""

    build_retry: RetryPolicy = field(default=BUILD_RETRY_POLICY)
    run_retry: RetryPolicy = field(default=RUN_RETRY_POLICY)
    # Heuristic buffer between a successful build and the test log stream.
    build_settle_delay: float = field(default=1.0, validator=_validate_non_negative)
    support_contact: str = field(default=DEFAULT_SUPPORT_CONTACT)


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for testrelay."""

    log_level: str = field(default="WARNING", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


@define(frozen=True, slots=True)
class TestRelayConfig:
    """Root configuration object for the testrelay application."""

    client: ClientConfig = field(factory=ClientConfig)
    runner: RunnerConfig = field(factory=RunnerConfig)
    global_config: GlobalConfig = field(factory=GlobalConfig)


# 🔼⚙️
