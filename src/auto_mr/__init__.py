"""auto-mr: automated merge/pull request workflow with safe git operations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("auto-mr")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
