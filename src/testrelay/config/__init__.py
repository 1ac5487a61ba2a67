#
# config/__init__.py
#
"""
Configuration handling sub-package for testrelay.

Exports the loading function and core configuration models.
"""

from .loader import load_config
from .models import (
    BUILD_RETRY_POLICY,
    RUN_RETRY_POLICY,
    ClientConfig,
    GlobalConfig,
    RetryPolicy,
    RunnerConfig,
    TestRelayConfig,
)

__all__ = [
    "BUILD_RETRY_POLICY",
    "RUN_RETRY_POLICY",
    "ClientConfig",
    "GlobalConfig",
    "RetryPolicy",
    "RunnerConfig",
    "TestRelayConfig",
    "load_config",
]

# 🔼⚙️
