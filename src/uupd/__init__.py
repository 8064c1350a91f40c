"""Top-level package for uupd.

Universal update orchestrator for image-based Linux systems.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("uupd")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "dev"
