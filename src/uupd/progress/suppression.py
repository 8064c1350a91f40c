"""Logger suppression while the progress line is being redrawn.

Console INFO records would tear the in-place progress line apart, so the
console handler is raised to WARNING for the duration of a render
session. File handlers are left alone.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Self


class LoggerSuppression:
    """Context manager for suppressing console logger during progress.

    Attributes:
        _original_console_levels: Handlers mapped to their original level.

    """

    def __init__(self) -> None:
        """Initialize the logger suppression context manager."""
        self._original_console_levels: dict[logging.Handler, int] = {}

    def __enter__(self) -> Self:
        """Suppress console handlers to WARNING level."""
        self.suppress()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Restore console handlers to their original levels."""
        self.restore()

    def suppress(self) -> None:
        """Raise console handlers to WARNING, remembering their level."""
        from uupd.logger import get_pipeline  # noqa: PLC0415

        for handler in get_pipeline().handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(
                handler, RotatingFileHandler
            ):
                self._original_console_levels[handler] = handler.level
                handler.setLevel(max(handler.level, logging.WARNING))

    def restore(self) -> None:
        """Restore console logger to original levels."""
        for handler, original_level in self._original_console_levels.items():
            handler.setLevel(original_level)
        self._original_console_levels.clear()
