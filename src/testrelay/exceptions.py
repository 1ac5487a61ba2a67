# src/testrelay/exceptions.py

"""
Exception hierarchy for testrelay.

Transport errors are retryable while polling; domain errors are authoritative
rejections from the remote service and are never retried.
"""

from typing import Any


class TestRelayError(Exception):
    """Base class for all testrelay errors."""

    pass


class ConfigurationError(TestRelayError):
    """Raised when the configuration file or its values are invalid."""

    pass


class RepositoryError(TestRelayError):
    """Raised when the local repository cannot provide a commit to test."""

    def __init__(self, message: str, repo_path: str | None = None):
        self.repo_path = repo_path
        full_message = message
        if repo_path:
            full_message += f" (Repo: '{repo_path}')"
        super().__init__(full_message)


class TransportError(TestRelayError):
    """Network, HTTP status, or malformed response failure."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LogStreamError(TransportError):
    """Opening or reading a log stream failed."""

    pass


class UnexpectedStatusError(TransportError):
    """A non-terminal status was observed while polling."""

    def __init__(self, label: str, raw_status: str):
        self.label = label
        self.raw_status = raw_status
        super().__init__(f"unexpected {label} status: {raw_status}")


class RetryExhaustedError(TransportError):
    """
    Polling gave up after its attempt budget.

    Only the last attempt's error is kept; its message becomes this error's
    message.
    """

    def __init__(self, last_error: TransportError, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(str(last_error), status_code=last_error.status_code)


class DomainError(TestRelayError):
    """The remote service answered with ``is_error=true``."""

    def __init__(self, message: str, response: Any = None):
        self.response = response
        super().__init__(message)


# 🔼⚙️
