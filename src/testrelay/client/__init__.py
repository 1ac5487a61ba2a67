#
# src/testrelay/client/__init__.py
#
"""
Client sub-package for the remote test-run service.
"""

from .http import RemoteClient
from .models import BuildStatus, RunCreationResult, RunStatus, RunStatusKind

__all__ = [
    "BuildStatus",
    "RemoteClient",
    "RunCreationResult",
    "RunStatus",
    "RunStatusKind",
]

# 🔼⚙️
