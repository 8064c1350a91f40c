"""Distrobox driver: rootful containers plus each user's containers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from uupd.constants import DISTROBOX_BINARY, DISTROBOX_BINARY_ENV
from uupd.drivers.base import UpdateDriver, WorkUnit
from uupd.models import DriverConfiguration

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner
    from uupd.models import InitConfiguration


class DistroboxDriver(UpdateDriver):
    """Upgrade every distrobox container, rootful first.

    distrobox refuses to run under sudo, so even the rootful pass goes
    through the system service manager (uid 0).
    """

    def __init__(
        self, init: InitConfiguration, runner: CommandRunner
    ) -> None:
        """Build the Distrobox configuration from the run settings."""
        super().__init__(
            DriverConfiguration(
                title="Distrobox",
                description="Rootful Distroboxes",
                user_description="Distroboxes for User:",
                enabled=True,
                multi_user=True,
                dry_run=init.dry_run,
                environment=init.environment,
            ),
            runner,
        )
        self.binary_path = self._config.binary_path(
            DISTROBOX_BINARY_ENV, DISTROBOX_BINARY
        )

    def work_units(self) -> list[WorkUnit]:
        """Rootful containers first, then one unit per user."""
        argv = (self.binary_path, "upgrade", "-a")
        units = [WorkUnit(self._config.description, argv, uid=0)]
        units.extend(
            WorkUnit(self._config.user_context(user.name), argv, uid=user.uid)
            for user in self.users
        )
        return units
