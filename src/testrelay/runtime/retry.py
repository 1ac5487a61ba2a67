# src/testrelay/runtime/retry.py
"""
Bounded retry combinator for status polling, built on tenacity.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from testrelay.client.models import RunStatusKind
from testrelay.config.models import RetryPolicy
from testrelay.exceptions import RetryExhaustedError, TransportError, UnexpectedStatusError
from testrelay.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.retry")


class StatusBearing(Protocol):
    status: RunStatusKind
    raw_status: str


StatusT = TypeVar("StatusT", bound=StatusBearing)
SleepFunc = Callable[[float], Awaitable[None]]


def _is_pending(result: StatusBearing) -> bool:
    return not result.status.is_terminal


def _attempt_error(retry_state: RetryCallState, label: str) -> TransportError:
    """The error a finished attempt stands for: its exception or its non-terminal status."""
    outcome = retry_state.outcome
    if outcome is None:
        raise RuntimeError("retry state has no finished attempt")
    if outcome.failed:
        return outcome.exception()
    return UnexpectedStatusError(label, outcome.result().raw_status)


def build_retrying(
    policy: RetryPolicy,
    label: str = "status",
    sleep: SleepFunc = asyncio.sleep,
) -> AsyncRetrying:
    """
    Tenacity controller for one polling loop.

    The wait after attempt n is initial_delay * 2**(n-1), capped at max_delay.
    Transport errors and PENDING statuses are retried; anything else ends the
    loop. On exhaustion only the last attempt's error survives.
    """
    poll_log = log.bind(label=label, max_attempts=policy.max_attempts)

    def log_attempt(retry_state: RetryCallState) -> None:
        poll_log.debug(
            "Poll attempt did not finish",
            attempt=retry_state.attempt_number,
            error=str(_attempt_error(retry_state, label)),
        )

    def give_up(retry_state: RetryCallState) -> None:
        last_error = _attempt_error(retry_state, label)
        poll_log.warning("Polling exhausted", error=str(last_error))
        raise RetryExhaustedError(last_error, attempts=retry_state.attempt_number) from last_error

    return AsyncRetrying(
        sleep=sleep,
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.initial_delay, max=policy.max_delay),
        retry=retry_if_exception_type(TransportError) | retry_if_result(_is_pending),
        after=log_attempt,
        retry_error_callback=give_up,
    )


async def poll_until_terminal(
    fetch: Callable[[], Awaitable[StatusT]],
    policy: RetryPolicy,
    label: str = "status",
    sleep: SleepFunc = asyncio.sleep,
) -> StatusT:
    """
    Calls `fetch` until it returns a terminal status or the policy's attempts run out.

    Raises `RetryExhaustedError` carrying only the last failure; errors other
    than `TransportError` propagate on the first attempt.
    """
    result = await build_retrying(policy, label=label, sleep=sleep)(fetch)
    log.debug("Poll reached terminal status", label=label, status=result.status.name)
    return result


# 🔼⚙️
