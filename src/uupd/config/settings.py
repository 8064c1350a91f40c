"""INI settings for uupd.

The settings file is optional; every key has a default. Binary paths are
not configured here, they come from the ``UUPD_*_BINARY`` environment
variables so a systemd drop-in can override them per host.

Example ``/etc/uupd/uupd.conf``::

    [DEFAULT]
    log_level = INFO
    console_log_level = INFO
    log_file = /var/log/uupd/uupd.log  # optional

    [modules]
    system = true
    brew = true
    flatpak = true
    distrobox = false

    [hardware]
    min_battery_percent = 20
    max_cpu_load_percent = 50
    max_memory_percent = 90
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from uupd.constants import (
    CONFIG_FILE_ENV,
    CONFIG_FILE_PATH,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_CPU_LOAD_PERCENT,
    DEFAULT_MAX_MEMORY_PERCENT,
    DEFAULT_MIN_BATTERY_PERCENT,
)
from uupd.exceptions import ConfigurationError
from uupd.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

SECTION_MODULES = "modules"
SECTION_HARDWARE = "hardware"
MODULE_NAMES = ("system", "brew", "flatpak", "distrobox")
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True, slots=True)
class HardwareThresholds:
    """Limits enforced by the hardware pre-flight checks."""

    min_battery_percent: int = DEFAULT_MIN_BATTERY_PERCENT
    max_cpu_load_percent: int = DEFAULT_MAX_CPU_LOAD_PERCENT
    max_memory_percent: int = DEFAULT_MAX_MEMORY_PERCENT


@dataclass(frozen=True, slots=True)
class Settings:
    """Effective settings for one uupd invocation."""

    log_level: str = DEFAULT_LOG_LEVEL
    console_log_level: str = DEFAULT_CONSOLE_LOG_LEVEL
    log_file: Path | None = None
    modules: Mapping[str, bool] = field(
        default_factory=lambda: dict.fromkeys(MODULE_NAMES, True)
    )
    hardware: HardwareThresholds = field(default_factory=HardwareThresholds)

    def module_enabled(self, name: str) -> bool:
        """Whether the driver module *name* may run."""
        return self.modules.get(name, True)


def resolve_config_path(
    explicit: Path | None = None,
    environment: Mapping[str, str] | None = None,
) -> Path:
    """Return the settings path: explicit, then env, then default."""
    if explicit is not None:
        return explicit
    env = os.environ if environment is None else environment
    override = env.get(CONFIG_FILE_ENV)
    return Path(override) if override else CONFIG_FILE_PATH


def _level(parser: configparser.ConfigParser, key: str, default: str) -> str:
    value = parser.defaults().get(key, default).strip().upper()
    if value not in _LOG_LEVELS:
        msg = f"{key} must be one of {', '.join(sorted(_LOG_LEVELS))}"
        raise ConfigurationError(msg, target=key)
    return value


def _percent(
    parser: configparser.ConfigParser, key: str, default: int
) -> int:
    try:
        value = parser.getint(SECTION_HARDWARE, key, fallback=default)
    except ValueError as e:
        msg = f"{key} must be an integer"
        raise ConfigurationError(msg, target=key) from e
    if not 0 <= value <= 100:  # noqa: PLR2004
        msg = f"{key} must be between 0 and 100"
        raise ConfigurationError(msg, target=key)
    return value


def load_settings(path: Path) -> Settings:
    """Load settings from *path*; a missing file yields defaults.

    Raises:
        ConfigurationError: If the file cannot be parsed or holds an
            invalid value

    """
    parser = configparser.ConfigParser(
        inline_comment_prefixes=("#", ";"),
        interpolation=None,
    )
    try:
        read = parser.read(path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as e:
        msg = f"Cannot parse settings file: {e}"
        raise ConfigurationError(msg, target=str(path)) from e

    if not read:
        logger.debug("No settings file at %s, using defaults", path)
        return Settings()

    modules: dict[str, bool] = {}
    for name in MODULE_NAMES:
        try:
            modules[name] = parser.getboolean(
                SECTION_MODULES, name, fallback=True
            )
        except ValueError as e:
            msg = f"modules.{name} must be a boolean"
            raise ConfigurationError(msg, target=str(path)) from e

    log_file = parser.defaults().get("log_file", "").strip()

    return Settings(
        log_level=_level(parser, "log_level", DEFAULT_LOG_LEVEL),
        console_log_level=_level(
            parser, "console_log_level", DEFAULT_CONSOLE_LOG_LEVEL
        ),
        log_file=Path(log_file) if log_file else None,
        modules=modules,
        hardware=HardwareThresholds(
            min_battery_percent=_percent(
                parser, "min_battery_percent", DEFAULT_MIN_BATTERY_PERCENT
            ),
            max_cpu_load_percent=_percent(
                parser, "max_cpu_load_percent", DEFAULT_MAX_CPU_LOAD_PERCENT
            ),
            max_memory_percent=_percent(
                parser, "max_memory_percent", DEFAULT_MAX_MEMORY_PERCENT
            ),
        ),
    )
