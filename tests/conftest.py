import io
import logging
import shutil
import subprocess
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from rich.console import Console

from testrelay.client import BuildStatus, RemoteClient, RunCreationResult, RunStatus, RunStatusKind
from testrelay.config import RetryPolicy, RunnerConfig
from testrelay.runtime import LogRelay
from testrelay.telemetry import Diagnostics


@pytest.fixture(autouse=True)
def reset_logging():
    """Drops handlers the CLI installs so they never outlive a CliRunner stream."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if type(handler).__module__.startswith("_pytest"):
            continue
        handler.close()
        root_logger.removeHandler(handler)
    structlog.reset_defaults()


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


def run_status(status: str, is_error: bool = False, error_message: str = "") -> RunStatus:
    return RunStatus(
        status=RunStatusKind.from_wire(status),
        raw_status=status,
        error_message=error_message,
        is_error=is_error,
    )


def build_status(status: str) -> BuildStatus:
    return BuildStatus(status=RunStatusKind.from_wire(status), raw_status=status)


@pytest.fixture
def make_run_status():
    return run_status


@pytest.fixture
def make_build_status():
    return build_status


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def runner_config() -> RunnerConfig:
    return RunnerConfig(
        build_retry=RetryPolicy(max_attempts=11, initial_delay=0.1, max_delay=2.0),
        run_retry=RetryPolicy(max_attempts=5, initial_delay=0.5, max_delay=2.0),
        build_settle_delay=1.0,
        support_contact="support@example.com",
    )


@pytest.fixture
def mock_client() -> AsyncMock:
    """A RemoteClient whose fetches succeed on the first call by default."""
    client = AsyncMock(spec=RemoteClient)
    client.fetch_build_status.return_value = build_status("success")
    client.fetch_run_status.return_value = run_status("success")
    return client


@pytest.fixture
def mock_relay() -> AsyncMock:
    relay = AsyncMock(spec=LogRelay)
    relay.stream.return_value = 0
    return relay


@pytest.fixture
def mock_diagnostics() -> MagicMock:
    return MagicMock(spec=Diagnostics)


@pytest.fixture
def stdout_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def stderr_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def consoles(stdout_buffer: io.StringIO, stderr_buffer: io.StringIO) -> tuple[Console, Console]:
    return (
        Console(file=stdout_buffer, highlight=False, width=200),
        Console(file=stderr_buffer, highlight=False, width=200),
    )


@pytest.fixture
def creation_without_build() -> RunCreationResult:
    return RunCreationResult(run_id="run-1", logstream_url="L1")


@pytest.fixture
def creation_with_build() -> RunCreationResult:
    return RunCreationResult(
        run_id="run-2",
        logstream_url="LT",
        pending_build_id="B1",
        pending_build_logstream_url="LB",
    )


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    repo_path = tmp_path / "test_repo"
    if repo_path.exists():
        shutil.rmtree(repo_path)
    repo_path.mkdir()

    try:
        subprocess.run(["git", "--version"], check=True, capture_output=True, text=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        pytest.skip(f"Git is not available or `git --version` failed: {e}")

    subprocess.run(["git", "init"], cwd=repo_path, check=True, capture_output=True)
    subprocess.run(["git", "config", "user.name", "Test User"], cwd=repo_path, check=True)
    subprocess.run(["git", "config", "user.email", "test@example.com"], cwd=repo_path, check=True)
    subprocess.run(["git", "config", "commit.gpgsign", "false"], cwd=repo_path, check=True)

    (repo_path / "README.md").write_text("initial commit")
    subprocess.run(["git", "add", "README.md"], cwd=repo_path, check=True)
    subprocess.run(["git", "commit", "-m", "Initial commit"], cwd=repo_path, check=True, capture_output=True)
    return repo_path
