"""Main logger module providing public API functions.

This module contains the core public API for the uupd logging system:
- setup_logging(): Configure logging with async-safe QueueHandler architecture
- get_logger(): Get or create logger instance with singleton pattern
- configure_logging(): Rebuild handlers from parsed flags and settings
- flush_all_handlers(): Ensure all pending log records are written
- clear_logger_state(): Clear global logger state for testing
"""

import atexit
import logging
from pathlib import Path

from uupd.constants import APP_NAME
from uupd.logger.config import load_log_settings
from uupd.logger.handlers import setup_root_logger
from uupd.logger.state import get_pipeline


def flush_all_handlers() -> None:
    """Flush all handlers in the QueueListener to ensure writes complete.

    Called before the process exits so the failure summary reaches the
    journal.
    """
    get_pipeline().drain()


atexit.register(get_pipeline().shutdown)


def setup_logging(name: str = APP_NAME) -> logging.Logger:
    """Return a logger, initializing the root ``uupd`` logger once.

    Handler Configuration (via QueueListener):
        - Console Handler: StreamHandler to stdout
        - File Handler: RotatingFileHandler, only when UUPD_LOG_DIR is set

    Thread Safety:
        Uses the pipeline lock to ensure thread-safe initialization.

    Args:
        name: Logger name, typically __name__ for module-level loggers

    Returns:
        Logger instance (singleton per name via logging.getLogger)

    """
    pipeline = get_pipeline()
    with pipeline.lock:
        if not pipeline.configured:
            console_level, file_level, log_file = load_log_settings()
            setup_root_logger(pipeline, console_level, file_level, log_file)

    return logging.getLogger(name)


def get_logger(name: str = APP_NAME) -> logging.Logger:
    """Get or create logger instance.

    Best Practice:
        Use __name__ as the logger name for proper hierarchical logging:
        >>> logger = get_logger(__name__)

    Args:
        name: Logger name, typically __name__ for module loggers

    Returns:
        Configured logger instance (singleton per name)

    """
    return setup_logging(name=name)


def configure_logging(
    console_level: str,
    file_level: str,
    log_file: Path | None = None,
    *,
    json_output: bool = False,
) -> None:
    """Rebuild the root handlers from runtime settings.

    Existing child loggers keep working: they propagate to the root
    logger, whose QueueHandler is swapped for a fresh one.

    Args:
        console_level: Console log level name
        file_level: File log level name
        log_file: Optional log file path
        json_output: Emit JSON records on the console

    Raises:
        ConfigurationError: If the log file cannot be opened

    """
    pipeline = get_pipeline()
    with pipeline.lock:
        setup_root_logger(
            pipeline,
            console_level.upper(),
            file_level.upper(),
            log_file,
            json_output,
        )


def clear_logger_state() -> None:
    """Clear global logger state for testing purposes.

    Stops the QueueListener and removes all handlers from ``uupd``
    loggers; the next ``get_logger()`` call builds a fresh pipeline.

    Warning:
        This function is intended for testing only.

    """
    pipeline = get_pipeline()
    with pipeline.lock:
        pipeline.drain()
        pipeline.shutdown()

        for logger_name in list(logging.Logger.manager.loggerDict.keys()):
            if logger_name == APP_NAME or logger_name.startswith(
                f"{APP_NAME}."
            ):
                log_instance = logging.getLogger(logger_name)
                for handler in log_instance.handlers[:]:
                    handler.close()
                    log_instance.removeHandler(handler)
