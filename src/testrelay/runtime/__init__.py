#
# src/testrelay/runtime/__init__.py
#
"""
Runtime sub-package: log relaying, status polling, and run orchestration.
"""

from .log_relay import HttpLogSource, LogRelay, LogSource, get_log_source
from .orchestrator import RunOutcome, RunPhase, TestRunOrchestrator
from .retry import poll_until_terminal

__all__ = [
    "HttpLogSource",
    "LogRelay",
    "LogSource",
    "RunOutcome",
    "RunPhase",
    "TestRunOrchestrator",
    "get_log_source",
    "poll_until_terminal",
]

# 🔼⚙️
