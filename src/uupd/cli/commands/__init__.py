"""Command handlers for uupd CLI."""

from .base import BaseCommandHandler
from .check import ImageOutdatedHandler, UpdateCheckHandler
from .hw_check import HwCheckHandler
from .update import UpdateHandler

__all__ = [
    "BaseCommandHandler",
    "HwCheckHandler",
    "ImageOutdatedHandler",
    "UpdateCheckHandler",
    "UpdateHandler",
]
