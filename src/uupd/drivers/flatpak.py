"""Flatpak driver: system-wide apps plus per-user installations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from uupd.constants import FLATPAK_BINARY, FLATPAK_BINARY_ENV
from uupd.drivers.base import UpdateDriver, WorkUnit
from uupd.models import DriverConfiguration

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner
    from uupd.models import InitConfiguration


class FlatpakDriver(UpdateDriver):
    """Update system Flatpaks as root, then each user's Flatpaks."""

    def __init__(
        self, init: InitConfiguration, runner: CommandRunner
    ) -> None:
        """Build the Flatpak configuration from the run settings."""
        super().__init__(
            DriverConfiguration(
                title="Flatpak",
                description="System Apps",
                user_description="Apps for User:",
                enabled=True,
                multi_user=True,
                dry_run=init.dry_run,
                environment=init.environment,
            ),
            runner,
        )
        self.binary_path = self._config.binary_path(
            FLATPAK_BINARY_ENV, FLATPAK_BINARY
        )

    def work_units(self) -> list[WorkUnit]:
        """System installation first, then one unit per user."""
        argv = (self.binary_path, "update", "-y", "--noninteractive")
        units = [WorkUnit(self._config.description, argv)]
        units.extend(
            WorkUnit(self._config.user_context(user.name), argv, uid=user.uid)
            for user in self.users
        )
        return units
