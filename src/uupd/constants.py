"""Constants shared across uupd modules.

Binary paths listed here are compiled-in defaults; every driver reads a
matching ``UUPD_*_BINARY`` environment variable first.
"""

from pathlib import Path
from typing import Final

APP_NAME: Final = "uupd"

# Single-instance lock
LOCKFILE_PATH: Final = Path("/run/uupd.lock")
LOCKFILE_ENV: Final = "UUPD_LOCKFILE_PATH"

# Settings file
CONFIG_FILE_PATH: Final = Path("/etc/uupd/uupd.conf")
CONFIG_FILE_ENV: Final = "UUPD_CONFIG_FILE"

# Driver binaries: (environment variable, default path)
BOOTC_BINARY_ENV: Final = "UUPD_BOOTC_BINARY"
BOOTC_BINARY: Final = "/usr/bin/bootc"
RPMOSTREE_BINARY_ENV: Final = "UUPD_RPMOSTREE_BINARY"
RPMOSTREE_BINARY: Final = "/usr/bin/rpm-ostree"
BREW_BINARY_ENV: Final = "UUPD_BREW_BINARY"
BREW_BINARY: Final = "/home/linuxbrew/.linuxbrew/bin/brew"
BREW_PREFIX: Final = Path("/home/linuxbrew/.linuxbrew")
FLATPAK_BINARY_ENV: Final = "UUPD_FLATPAK_BINARY"
FLATPAK_BINARY: Final = "/usr/bin/flatpak"
DISTROBOX_BINARY_ENV: Final = "UUPD_DISTROBOX_BINARY"
DISTROBOX_BINARY: Final = "/usr/bin/distrobox"

# Session helpers
SYSTEMD_RUN_BINARY: Final = "/usr/bin/systemd-run"
LOGINCTL_BINARY: Final = "/usr/bin/loginctl"
NOTIFY_SEND_BINARY: Final = "/usr/bin/notify-send"

# bootc prints this when the booted image matches the remote one
BOOTC_NO_CHANGES: Final = "No changes in:"
# rpm-ostree upgrade --check exits with 77 when nothing is pending
RPMOSTREE_NO_UPDATES_EXIT: Final = 77

# Image older than this many months triggers the staleness warning
OUTDATED_AFTER_MONTHS: Final = 1

# Hardware check defaults
DEFAULT_MIN_BATTERY_PERCENT: Final = 20
DEFAULT_MAX_CPU_LOAD_PERCENT: Final = 50
DEFAULT_MAX_MEMORY_PERCENT: Final = 90

# Exit codes
EXIT_SUCCESS: Final = 0
EXIT_FAILURE: Final = 1
EXIT_PREFLIGHT: Final = 2
EXIT_INTERRUPTED: Final = 130

# Logging
LOG_DIR_ENV: Final = "UUPD_LOG_DIR"
LOG_FILE_NAME: Final = "uupd.log"
DEFAULT_LOG_LEVEL: Final = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final = "INFO"
LOG_ROTATION_THRESHOLD_BYTES: Final = 10 * 1024 * 1024
LOG_BACKUP_COUNT: Final = 5
LOG_CONSOLE_FORMAT: Final = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final = "%H:%M:%S"
LOG_FILE_FORMAT: Final = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(funcName)s:%(lineno)d] - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final = "%Y-%m-%d %H:%M:%S"
LOG_COLORS: Final = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
    "RESET": "\033[0m",
}
