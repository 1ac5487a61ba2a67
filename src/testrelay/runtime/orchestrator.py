# src/testrelay/runtime/orchestrator.py

"""
Sequences the optional build phase and the test phase of a remote test run.

Each phase streams its logs to completion, then polls for a terminal status.
"""

import asyncio
from enum import Enum, auto

import structlog
from rich.console import Console

from testrelay.client import RemoteClient, RunCreationResult, RunStatusKind
from testrelay.config.models import RunnerConfig
from testrelay.exceptions import DomainError, LogStreamError, RetryExhaustedError, TestRelayError
from testrelay.telemetry import Diagnostics, StructLogger

from .log_relay import LogRelay
from .retry import SleepFunc, poll_until_terminal

log: StructLogger = structlog.get_logger("runtime.orchestrator")


class RunPhase(Enum):
    """Where an invocation currently is in the build/test sequence."""

    CREATED = auto()
    BUILD_STREAMING = auto()
    BUILD_POLLING = auto()
    TEST_STREAMING = auto()
    TEST_POLLING = auto()
    BUILD_FAILED = auto()  # terminal
    TESTS_PASSED = auto()  # terminal
    TESTS_FAILED = auto()  # terminal
    ERRORED = auto()  # terminal


class RunOutcome(Enum):
    """Normal end states of an invocation. Errors are raised instead."""

    TESTS_PASSED = auto()
    TESTS_FAILED = auto()
    BUILD_FAILED = auto()


class TestRunOrchestrator:
    """Drives one test run from creation to a final outcome."""

    def __init__(
        self,
        client: RemoteClient,
        relay: LogRelay,
        diagnostics: Diagnostics,
        config: RunnerConfig | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.relay = relay
        self.diagnostics = diagnostics
        self.config = config or RunnerConfig()
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self.phase = RunPhase.CREATED
        self._sleep = sleep

    def _transition(self, new_phase: RunPhase) -> None:
        log.debug("Run phase changed", old_phase=self.phase.name, new_phase=new_phase.name)
        self.phase = new_phase

    def _say(self, text: str = "") -> None:
        self.console.print(text, markup=False, soft_wrap=True)

    def _warn(self, text: str = "") -> None:
        self.err_console.print(text, style="red", markup=False, soft_wrap=True)

    def _suggest_retry(self, what: str) -> None:
        self._warn()
        self._warn(f"We couldn't fetch the results of your {what}. Please try again?")
        self._warn(f"Let us know at {self.config.support_contact} if this error persists.")

    async def execute(self, commit_sha: str, autofix_request_id: str | None = None) -> RunOutcome:
        """Creates a test run for `commit_sha` and follows it to the end."""
        try:
            creation = await self.client.create_test_run(commit_sha, autofix_request_id)
        except TestRelayError:
            self._transition(RunPhase.ERRORED)
            raise
        return await self.handle_test_run(creation)

    async def handle_test_run(self, creation: RunCreationResult) -> RunOutcome:
        """
        Runs the build phase (when the service reports a pending build) and then the test phase.

        Returns BUILD_FAILED without touching the test logs when the build fails.

        Raises:
            LogStreamError: A log stream could not be relayed.
            RetryExhaustedError: No terminal status was observed within the retry budget.
            DomainError: The final test run status carries ``is_error=true``.
        """
        run_log = log.bind(run_id=creation.run_id)
        try:
            if creation.has_pending_build:
                build_succeeded = await self._run_build_phase(creation)
                if not build_succeeded:
                    self._transition(RunPhase.BUILD_FAILED)
                    return RunOutcome.BUILD_FAILED
            else:
                run_log.debug("No pending build, starting test phase")

            outcome = await self._run_test_phase(creation)
        except TestRelayError:
            self._transition(RunPhase.ERRORED)
            raise

        self._transition(
            RunPhase.TESTS_PASSED if outcome is RunOutcome.TESTS_PASSED else RunPhase.TESTS_FAILED
        )
        return outcome

    async def _run_build_phase(self, creation: RunCreationResult) -> bool:
        build_id = creation.pending_build_id
        build_log = log.bind(run_id=creation.run_id, build_id=build_id)

        if creation.pending_build_logstream_url:
            self._transition(RunPhase.BUILD_STREAMING)
            build_log.debug("Streaming build logs", url=creation.pending_build_logstream_url)
            self._say()
            try:
                await self.relay.stream(creation.pending_build_logstream_url)
            except LogStreamError as e:
                self._suggest_retry("build")
                raise LogStreamError(f"stream build logs: {e}") from e
            build_log.debug("Finished streaming build logs")
        else:
            build_log.debug("Pending build has no log stream")

        self._transition(RunPhase.BUILD_POLLING)
        try:
            build = await poll_until_terminal(
                lambda: self.client.fetch_build_status(build_id),
                self.config.build_retry,
                label="build",
                sleep=self._sleep,
            )
        except RetryExhaustedError as e:
            # Only build polling exhaustion is escalated.
            self.diagnostics.capture_exception(e, build_id=build_id, run_id=creation.run_id)
            self._suggest_retry("build")
            raise

        build_log.debug("Finished fetching build", status=build.status.name)

        if build.status is RunStatusKind.FAILURE:
            self._warn()
            self._warn("Looks like your codebase failed to build.")
            self._warn(
                f"If you think this is a CodeCrafters error, please let us know at {self.config.support_contact}."
            )
            self._warn()
            return False

        await self._sleep(self.config.build_settle_delay)
        return True

    async def _run_test_phase(self, creation: RunCreationResult) -> RunOutcome:
        run_log = log.bind(run_id=creation.run_id)

        self._transition(RunPhase.TEST_STREAMING)
        self._say()
        self._say("Running tests. Logs should appear shortly...")
        self._say()
        try:
            await self.relay.stream(creation.logstream_url)
        except LogStreamError as e:
            self._suggest_retry("test run")
            raise LogStreamError(f"stream logs: {e}") from e

        self._transition(RunPhase.TEST_POLLING)
        run_log.debug("Fetching test run")
        try:
            run = await poll_until_terminal(
                lambda: self.client.fetch_run_status(creation.run_id),
                self.config.run_retry,
                label="test run",
                sleep=self._sleep,
            )
        except RetryExhaustedError:
            self._suggest_retry("test run")
            raise

        run_log.debug("Finished fetching test run", status=run.status.name, is_error=run.is_error)

        self._say()
        if run.status is RunStatusKind.FAILURE:
            self._say("Tests failed")
        elif run.status is RunStatusKind.SUCCESS:
            self._say("Tests passed!")

        if run.is_error:
            raise DomainError(run.error_message, response=run)

        return RunOutcome.TESTS_PASSED if run.status is RunStatusKind.SUCCESS else RunOutcome.TESTS_FAILED


# 🔼⚙️
