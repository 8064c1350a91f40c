"""CLI package for uupd.

This package contains the argument parser, the runner and the command
handlers behind the ``uupd`` console script.
"""

from .parser import CLIParser
from .runner import CLIRunner

__all__ = ["CLIParser", "CLIRunner"]
