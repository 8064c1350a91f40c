"""Settings file handling."""

from .settings import (
    MODULE_NAMES,
    HardwareThresholds,
    Settings,
    load_settings,
    resolve_config_path,
)

__all__ = [
    "MODULE_NAMES",
    "HardwareThresholds",
    "Settings",
    "load_settings",
    "resolve_config_path",
]
