"""Homebrew driver.

Homebrew must never run as root. The driver runs it as the owner of the
Homebrew prefix, which it discovers during ``prepare()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from uupd.constants import BREW_BINARY, BREW_BINARY_ENV, BREW_PREFIX
from uupd.drivers.base import UpdateDriver, WorkUnit
from uupd.exceptions import DriverError, DriverUnavailableError
from uupd.logger import get_logger
from uupd.models import CommandResult, DriverConfiguration

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner
    from uupd.models import InitConfiguration

logger = get_logger(__name__)

BREW_ENV = {
    "HOMEBREW_NO_ANALYTICS": "1",
    "HOMEBREW_NO_ENV_HINTS": "1",
}


class BrewDriver(UpdateDriver):
    """Run ``brew update`` followed by ``brew upgrade`` as one step."""

    def __init__(
        self,
        init: InitConfiguration,
        runner: CommandRunner,
        prefix: Path = BREW_PREFIX,
    ) -> None:
        """Build the Brew configuration from the run settings."""
        super().__init__(
            DriverConfiguration(
                title="Brew",
                description="CLI Apps",
                enabled=True,
                multi_user=False,
                dry_run=init.dry_run,
                environment=init.environment,
            ),
            runner,
        )
        self.binary_path = self._config.binary_path(
            BREW_BINARY_ENV, BREW_BINARY
        )
        self.prefix = prefix
        self.uid: int | None = None

    async def prepare(self) -> None:
        """Resolve the uid that owns the Homebrew prefix.

        Raises:
            DriverUnavailableError: If Homebrew is not installed
            DriverError: If the prefix cannot be inspected

        """
        try:
            self.uid = self.prefix.stat().st_uid
        except FileNotFoundError as e:
            msg = f"Homebrew prefix {self.prefix} not found"
            raise DriverUnavailableError(msg, target=self.name) from e
        except OSError as e:
            msg = f"Cannot inspect Homebrew prefix {self.prefix}: {e}"
            raise DriverError(msg, target=self.name) from e
        if not Path(self.binary_path).exists():
            msg = f"brew binary {self.binary_path} not found"
            raise DriverUnavailableError(msg, target=self.name)
        logger.debug("Homebrew owned by uid %d", self.uid)

    def work_units(self) -> list[WorkUnit]:
        """A single unit; the upgrade command is chained in ``_execute``."""
        return [
            WorkUnit(
                self._config.description,
                (self.binary_path, "update"),
                uid=self.uid if self.uid is not None else 0,
                env=BREW_ENV,
            )
        ]

    async def _execute(self, unit: WorkUnit) -> CommandResult:
        """Update formulae, then upgrade them if the update succeeded."""
        result = await super()._execute(unit)
        if result.failed:
            return result
        upgrade = WorkUnit(
            unit.context,
            (self.binary_path, "upgrade"),
            uid=unit.uid,
            env=unit.env,
        )
        return await super()._execute(upgrade)
