"""Bootstrap settings for the logging system.

Logging is initialized on the first ``get_logger()`` call, which happens
at import time, before flags or the settings file are read. These
defaults are replaced by ``configure_logging()`` once the CLI runner
knows what the user asked for.
"""

import os
from pathlib import Path

from uupd.constants import (
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    LOG_DIR_ENV,
    LOG_FILE_NAME,
)


def load_log_settings() -> tuple[str, str, Path | None]:
    """Load default console level, file level, and file path.

    Environment Variable Override:
        UUPD_LOG_DIR: When set, logs are also written to
        ``$UUPD_LOG_DIR/uupd.log``. Otherwise uupd logs to stdout only,
        which the journal captures when running as a systemd service.

    Returns:
        Tuple of (console_level, file_level, log_path)

    """
    env_log_dir = os.getenv(LOG_DIR_ENV)
    log_path = (
        Path(env_log_dir).expanduser() / LOG_FILE_NAME if env_log_dir else None
    )
    return DEFAULT_CONSOLE_LOG_LEVEL, DEFAULT_LOG_LEVEL, log_path
