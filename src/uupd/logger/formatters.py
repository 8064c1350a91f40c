"""Logging formatters for console, journal and JSON output.

This module provides custom formatters for the uupd logging system:
- ColoredConsoleFormatter: Adds ANSI color codes to log levels
- SimpleConsoleFormatter: Shows only message content (no metadata)
- HybridConsoleFormatter: Uses simple format for INFO, structured for others
- JsonFormatter: One JSON object per record, for ``--json`` runs

The hybrid formatter keeps progress lines and summaries readable in the
journal while warnings and errors still carry their origin.
"""

import logging
from datetime import UTC, datetime

import orjson

from uupd.constants import LOG_COLORS

# LogRecord attributes that never go into the JSON "extra" section
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with ANSI color support for different log levels.

    Colors are applied to the level name only for the duration of the
    ``format()`` call; the shared record is restored afterwards.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors for console output.

        Args:
            record: The log record to format

        Returns:
            Formatted log message with ANSI color codes for the level name

        """
        if record.levelname in LOG_COLORS:
            color = LOG_COLORS[record.levelname]
            reset = LOG_COLORS["RESET"]
            colored_level = f"{color}{record.levelname}{reset}"

            original_levelname = record.levelname
            record.levelname = colored_level
            try:
                return super().format(record)
            finally:
                record.levelname = original_levelname

        return super().format(record)


class SimpleConsoleFormatter(logging.Formatter):
    """Minimal console formatter that only shows the message content."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record showing only the message.

        Args:
            record: The log record to format

        Returns:
            The message content only, without metadata

        """
        return record.getMessage()


class HybridConsoleFormatter(logging.Formatter):
    """Console formatter with simple format for INFO, structured for others.

    Example Output:
        INFO:     "Updates Completed"
        WARNING:  "12:30:45 - uupd.core.orchestrator - WARNING - ..."

    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
    ) -> None:
        """Initialize hybrid formatter with structured format template.

        Args:
            fmt: Format string for structured messages (WARNING and above)
            datefmt: Date format string for timestamps

        """
        super().__init__(fmt, datefmt)
        self._simple_formatter = SimpleConsoleFormatter()
        self._colored_formatter = ColoredConsoleFormatter(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record using simple or structured format by level."""
        if record.levelno == logging.INFO:
            return self._simple_formatter.format(record)
        return self._colored_formatter.format(record)


class JsonFormatter(logging.Formatter):
    """Serialize each record as a single-line JSON object.

    Fields passed through ``extra=`` are kept as top-level keys, so
    ``logger.info("Updating", extra={"title": "Flatpak"})`` produces
    ``{"level": "INFO", "msg": "Updating", "title": "Flatpak", ...}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        payload: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")
