"""Logging utilities for uupd.

This package provides structured logging with:
- Hybrid console output (bare INFO lines, colored structured warnings)
- Optional JSON console output for machine consumers
- Optional rotating file output
- Async-safe logging via QueueHandler/QueueListener
- Hierarchical logger naming (e.g., uupd.drivers.flatpak)

Architecture:
    Application → QueueHandler → Queue → QueueListener Thread
                                              ↓
                                    Console + File Handlers

Usage:
    >>> from uupd.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Updating %s", title)  # Use %-style formatting

Environment Variables:
    UUPD_LOG_DIR: Also write logs to $UUPD_LOG_DIR/uupd.log

RULES FOR CONTRIBUTORS:
    1. Always use: logger = get_logger(__name__)
    2. Never call logging.basicConfig()
    3. Never attach handlers to child loggers
    4. Never use f-strings in log calls
"""

from uupd.logger.formatters import (
    ColoredConsoleFormatter,
    HybridConsoleFormatter,
    JsonFormatter,
    SimpleConsoleFormatter,
)
from uupd.logger.logger import (
    clear_logger_state,
    configure_logging,
    flush_all_handlers,
    get_logger,
    setup_logging,
)
from uupd.logger.state import LogPipeline, get_pipeline

__all__ = [
    "ColoredConsoleFormatter",
    "HybridConsoleFormatter",
    "JsonFormatter",
    "LogPipeline",
    "SimpleConsoleFormatter",
    "clear_logger_state",
    "configure_logging",
    "flush_all_handlers",
    "get_logger",
    "get_pipeline",
    "setup_logging",
]
