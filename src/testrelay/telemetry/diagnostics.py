#
# src/testrelay/telemetry/diagnostics.py
#
"""
Process-wide crash reporting, modelled as an explicit context object.

The CLI opens a session with `diagnostics_session()` and passes the resulting
`Diagnostics` down the call chain; nothing here is global state.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

import structlog
from attrs import field, mutable

log = structlog.get_logger("telemetry.diagnostics")


@runtime_checkable
class ExceptionReporter(Protocol):
    """Destination for exceptional conditions worth a crash report."""

    def report(self, exc: BaseException, context: Mapping[str, Any]) -> None: ...

    def close(self) -> None: ...


class LogExceptionReporter:
    """Reports exceptions through the structured log at ERROR level."""

    def __init__(self, logger_name: str = "diagnostics.report") -> None:
        self._log = structlog.get_logger(logger_name)

    def report(self, exc: BaseException, context: Mapping[str, Any]) -> None:
        self._log.error(
            "Exceptional condition reported",
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
            **context,
        )

    def close(self) -> None:
        self._log.debug("Log exception reporter closed")


@mutable(slots=True)
class Diagnostics:
    """Holds the active reporter plus tags attached to every report."""

    reporter: ExceptionReporter = field(factory=LogExceptionReporter)
    tags: dict[str, Any] = field(factory=dict)
    reported_count: int = field(default=0, init=False)
    closed: bool = field(default=False, init=False)

    def capture_exception(self, exc: BaseException, **context: Any) -> None:
        """Fire-and-forget: a failing reporter never interrupts the caller."""
        if self.closed:
            log.warning("Diagnostics session already closed, dropping report", error=str(exc))
            return
        try:
            self.reporter.report(exc, {**self.tags, **context})
        except Exception as e:
            log.warning("Exception reporter failed", error=str(e), original_error=str(exc))
            return
        self.reported_count += 1

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.reporter.close()
        log.debug("Diagnostics session closed", reported_count=self.reported_count)


@contextmanager
def diagnostics_session(
    reporter: ExceptionReporter | None = None, **tags: Any
) -> Iterator[Diagnostics]:
    """Sets up crash reporting for one CLI invocation and tears it down afterwards."""
    diagnostics = Diagnostics(reporter=reporter or LogExceptionReporter(), tags=tags)
    log.debug("Diagnostics session started", **tags)
    try:
        yield diagnostics
    finally:
        diagnostics.close()


# 🔼⚙️
