#
# src/testrelay/telemetry/__init__.py
#
"""
Logging and crash-reporting helpers for testrelay.
"""

from .diagnostics import Diagnostics, ExceptionReporter, LogExceptionReporter, diagnostics_session
from .logger import StructLogger, setup_logging

__all__ = [
    "Diagnostics",
    "ExceptionReporter",
    "LogExceptionReporter",
    "StructLogger",
    "diagnostics_session",
    "setup_logging",
]

# 🔼⚙️
