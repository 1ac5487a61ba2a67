#
# src/testrelay/__init__.py
#
"""
testrelay: run your tests on a remote service and follow them from the terminal.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("testrelay")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = ["__version__"]
