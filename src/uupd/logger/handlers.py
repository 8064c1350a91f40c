"""Handler creation and management for logging system.

This module provides functions for creating and configuring logging handlers:
- Console handlers with hybrid or JSON formatting
- Rotating file handlers with automatic log rotation
- Root logger setup with QueueListener for async-safe logging

The QueueListener architecture keeps the event loop from blocking on
console or file I/O while a driver subprocess is being awaited.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from uupd.constants import (
    APP_NAME,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_ROTATION_THRESHOLD_BYTES,
)
from uupd.exceptions import ConfigurationError
from uupd.logger.formatters import HybridConsoleFormatter, JsonFormatter
from uupd.logger.state import LogPipeline


def _create_console_handler(
    console_level: str,
    json_output: bool,  # noqa: FBT001
) -> logging.StreamHandler:
    """Create and configure console handler.

    Args:
        console_level: Log level for console (e.g., "DEBUG", "INFO")
        json_output: Emit one JSON object per record instead of text

    Returns:
        Configured StreamHandler for console output

    """
    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(
            HybridConsoleFormatter(
                LOG_CONSOLE_FORMAT,
                datefmt=LOG_CONSOLE_DATE_FORMAT,
            )
        )
    console_handler.setLevel(getattr(logging, console_level, logging.INFO))
    return console_handler


def _create_file_handler(
    log_file: Path, file_level: str
) -> RotatingFileHandler:
    """Create and configure rotating file handler.

    Args:
        log_file: Path to log file
        file_level: Log level for file (e.g., "DEBUG", "INFO")

    Returns:
        Configured RotatingFileHandler

    Raises:
        ConfigurationError: If file handler creation fails

    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=LOG_ROTATION_THRESHOLD_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            logging.Formatter(
                LOG_FILE_FORMAT,
                datefmt=LOG_FILE_DATE_FORMAT,
            )
        )
        file_handler.setLevel(getattr(logging, file_level, logging.INFO))
    except OSError as e:
        msg = f"Failed to setup file logging: {e}"
        raise ConfigurationError(msg, target=str(log_file)) from e
    else:
        return file_handler


def setup_root_logger(
    pipeline: LogPipeline,
    console_level: str,
    file_level: str,
    log_file: Path | None,
    json_output: bool = False,  # noqa: FBT001, FBT002
) -> None:
    """Initialize root logger with handlers via QueueListener.

    Safe to call again: the pipeline retires its current listener and
    the root logger's QueueHandler is replaced, so flags parsed after
    import time can rebuild the output.

    Args:
        pipeline: Process-wide logging pipeline
        console_level: Console log level (e.g., "INFO", "WARNING")
        file_level: File log level (e.g., "DEBUG", "INFO")
        log_file: Path to log file, None disables file logging
        json_output: Use JSON console output

    Raises:
        ConfigurationError: If handler setup fails

    """
    root_logger = logging.getLogger(APP_NAME)
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handlers
    root_logger.propagate = False

    handlers: list[logging.Handler] = [
        _create_console_handler(console_level, json_output)
    ]
    if log_file is not None:
        handlers.append(_create_file_handler(log_file, file_level))

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.addHandler(pipeline.rebuild(handlers))
