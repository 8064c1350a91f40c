"""Shared behavior of the system image drivers.

Two implementations manage the booted OS image: bootc (image-native)
and rpm-ostree (legacy fallback). Both probe for pending updates, read
the booted deployment timestamp and run a single upgrade step.
"""

from __future__ import annotations

import calendar
from abc import abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from uupd.constants import OUTDATED_AFTER_MONTHS
from uupd.drivers.base import UpdateDriver, WorkUnit
from uupd.exceptions import DriverError, DriverUnavailableError
from uupd.logger import get_logger
from uupd.models import DriverConfiguration

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner
    from uupd.models import CommandResult, InitConfiguration

logger = get_logger(__name__)


def months_ago(now: datetime, months: int) -> datetime:
    """Return *now* shifted back by calendar months, clamping the day."""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def is_stale(timestamp: datetime, now: datetime | None = None) -> bool:
    """Whether *timestamp* is older than the staleness threshold."""
    now = now or datetime.now(UTC)
    return timestamp < months_ago(now, OUTDATED_AFTER_MONTHS)


def system_configuration(init: InitConfiguration) -> DriverConfiguration:
    """Configuration shared by both system drivers.

    The system driver starts disabled in CI, where there is no booted
    image to upgrade.
    """
    return DriverConfiguration(
        title="System",
        description="System Image",
        enabled=not init.ci,
        multi_user=False,
        dry_run=init.dry_run,
        environment=init.environment,
    )


class SystemDriver(UpdateDriver):
    """Common behavior of the image drivers.

    Subclasses provide the binary, the probe commands and how to read
    their output.
    """

    binary_env: str
    default_binary: str

    def __init__(
        self, init: InitConfiguration, runner: CommandRunner
    ) -> None:
        """Build the system configuration from the run settings."""
        super().__init__(system_configuration(init), runner)
        self.binary_path = self._config.binary_path(
            self.binary_env, self.default_binary
        )
        logger.debug(
            "Reported %s binary path: %s", self.kind, self.binary_path
        )

    @property
    def kind(self) -> str:
        """Name of the underlying tool, for logs."""
        return Path(self.default_binary).name

    async def prepare(self) -> None:
        """Check that the tool is installed.

        Raises:
            DriverUnavailableError: If the binary does not exist

        """
        if not Path(self.binary_path).exists():
            msg = f"{self.binary_path} not found"
            raise DriverUnavailableError(msg, target=self.kind)

    async def _probe(self, *args: str) -> CommandResult:
        return await self.runner.run(
            [self.binary_path, *args], context=f"{self.kind} probe"
        )

    def work_units(self) -> list[WorkUnit]:
        """A single unit upgrading the image."""
        return [
            WorkUnit(self._config.description, (self.binary_path, "upgrade"))
        ]

    async def check_availability(self) -> bool:
        """Return True when a newer image is available.

        Always True in dry-run mode.

        Raises:
            DriverError: If the check command fails

        """
        if self._config.dry_run:
            return True
        available = await self._check_update()
        logger.debug(
            "Executed %s update check, update needed: %s",
            self.kind,
            available,
        )
        return available

    async def is_outdated(self) -> bool:
        """Return True when the booted image is more than a month old.

        Always False in dry-run mode. A timestamp that cannot be parsed
        counts as not outdated.

        Raises:
            DriverError: If the status command fails or its output is not
                valid JSON

        """
        if self._config.dry_run:
            return False
        timestamp = await self._booted_timestamp()
        if timestamp is None:
            return False
        return is_stale(timestamp)

    @abstractmethod
    async def _check_update(self) -> bool:
        """Query the tool for a pending update."""

    @abstractmethod
    async def _booted_timestamp(self) -> datetime | None:
        """Return the booted image timestamp, None if unparseable."""

