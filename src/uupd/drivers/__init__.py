"""Update drivers, one per external update tool."""

from .base import UpdateDriver, WorkUnit
from .bootc import BootcDriver
from .brew import BrewDriver
from .distrobox import DistroboxDriver
from .flatpak import FlatpakDriver
from .rpm_ostree import RpmOstreeDriver
from .selection import SystemDriverSelection, select_system_driver
from .system import SystemDriver

__all__ = [
    "BootcDriver",
    "BrewDriver",
    "DistroboxDriver",
    "FlatpakDriver",
    "RpmOstreeDriver",
    "SystemDriver",
    "SystemDriverSelection",
    "UpdateDriver",
    "WorkUnit",
    "select_system_driver",
]
