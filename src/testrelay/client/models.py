#
# src/testrelay/client/models.py
#
"""
Response models for the remote test-run service.

Wire strings are translated into `RunStatusKind` as soon as a response is
parsed, so nothing past the client boundary compares raw status strings.
"""

from collections.abc import Mapping
from enum import Enum, auto
from typing import Any

from attrs import define, field


class RunStatusKind(Enum):
    """Closed set of statuses a build or test run can report."""

    SUCCESS = auto()
    FAILURE = auto()
    PENDING = auto()  # anything that is not (yet) terminal

    @classmethod
    def from_wire(cls, value: Any) -> "RunStatusKind":
        if value == "success":
            return cls.SUCCESS
        if value == "failure":
            return cls.FAILURE
        return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatusKind.PENDING


def _str_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


@define(frozen=True, slots=True)
class RunCreationResult:
    """Body of a create_test_run response."""

    run_id: str
    logstream_url: str
    pending_build_id: str | None = field(default=None)
    pending_build_logstream_url: str | None = field(default=None)
    error_message: str = field(default="")
    is_error: bool = field(default=False)

    @property
    def has_pending_build(self) -> bool:
        return bool(self.pending_build_id)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "RunCreationResult":
        return cls(
            run_id=_str_field(data, "id"),
            logstream_url=_str_field(data, "logstream_url"),
            pending_build_id=_str_field(data, "pending_build_id") or None,
            pending_build_logstream_url=_str_field(data, "pending_build_logstream_url") or None,
            error_message=_str_field(data, "error_message"),
            is_error=bool(data.get("is_error", False)),
        )


@define(frozen=True, slots=True)
class _StatusResponse:
    status: RunStatusKind
    raw_status: str = field(default="")
    error_message: str = field(default="")
    is_error: bool = field(default=False)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]):
        raw_status = _str_field(data, "status")
        return cls(
            status=RunStatusKind.from_wire(raw_status),
            raw_status=raw_status,
            error_message=_str_field(data, "error_message"),
            is_error=bool(data.get("is_error", False)),
        )


@define(frozen=True, slots=True)
class BuildStatus(_StatusResponse):
    """Body of a fetch_test_runner_build response."""


@define(frozen=True, slots=True)
class RunStatus(_StatusResponse):
    """Body of a fetch_test_run response."""


# 🔼⚙️
