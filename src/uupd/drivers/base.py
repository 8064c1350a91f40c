"""Driver contract shared by every update backend.

A driver wraps one external update tool. The orchestrator only talks to
drivers through ``UpdateDriver``; it never looks at the concrete type.

Lifecycle of a driver during one run:
    1. ``__init__``: build the immutable DriverConfiguration snapshot.
    2. ``prepare()``: construction probe; DriverError disables the driver.
    3. ``set_users()`` / ``set_enabled()``: the only mutations, both
       before any step is counted.
    4. ``steps()``, ``check_availability()``, ``is_outdated()``: pure
       queries.
    5. ``update(tracker)``: perform the work, returning one
       CommandResult per unit of work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from uupd.logger import get_logger
from uupd.progress.tracker import TrackerMessage

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from uupd.core.command import CommandRunner
    from uupd.models import (
        CommandResult,
        DriverConfiguration,
        User,
    )
    from uupd.progress.tracker import StepTracker

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class WorkUnit:
    """One step of a driver: a label and the command it runs.

    ``uid`` None runs the command directly as the current (root) user;
    any other value runs it through the service manager of that uid.
    """

    context: str
    argv: tuple[str, ...]
    uid: int | None = None
    env: Mapping[str, str] | None = None


class UpdateDriver(ABC):
    """Abstract base class for all update drivers.

    Subclasses build their configuration in ``__init__`` and describe
    their work with ``work_units()``; the default ``update()`` turns
    those units into progress events and CommandResults, so dry runs and
    real runs emit identical label sequences.
    """

    def __init__(
        self,
        config: DriverConfiguration,
        runner: CommandRunner,
    ) -> None:
        """Initialize driver with its configuration snapshot and runner."""
        self._config = config
        self.runner = runner
        self._users: tuple[User, ...] = ()

    @property
    def name(self) -> str:
        """Short display name of the driver."""
        return self._config.title

    def config(self) -> DriverConfiguration:
        """Return the current configuration snapshot."""
        return self._config

    def set_enabled(self, value: bool) -> None:  # noqa: FBT001
        """Enable or disable the driver for this run."""
        self._config = self._config.with_enabled(value)

    def set_users(self, users: Sequence[User]) -> None:
        """Register user sessions; ignored by single-user drivers."""
        if self._config.multi_user:
            self._users = tuple(users)

    @property
    def users(self) -> tuple[User, ...]:
        """User sessions this driver acts on, in enumeration order."""
        return self._users

    def steps(self) -> int:
        """Number of progress steps this driver contributes."""
        if not self._config.enabled:
            return 0
        return 1 + len(self._users)

    async def prepare(self) -> None:
        """Probe that the driver can run on this host.

        Raises:
            DriverError: If the driver cannot be used

        """

    async def check_availability(self) -> bool:
        """Return True when the driver has something to do."""
        return True

    async def is_outdated(self) -> bool:
        """Return True when the managed image is stale."""
        return False

    @abstractmethod
    def work_units(self) -> list[WorkUnit]:
        """Describe the units of work, system-wide first, then per user."""

    def _message(self, unit: WorkUnit) -> TrackerMessage:
        return TrackerMessage(self._config.title, unit.context)

    async def _execute(self, unit: WorkUnit) -> CommandResult:
        if unit.uid is None:
            return await self.runner.run(unit.argv, unit.context, unit.env)
        return await self.runner.run_as(
            unit.uid, unit.argv, unit.context, unit.env
        )

    async def update(self, tracker: StepTracker) -> list[CommandResult]:
        """Run every unit of work in order.

        A failing unit does not stop the remaining ones. In dry-run mode
        the same labels are emitted but nothing is executed and the
        returned list is empty.
        """
        results: list[CommandResult] = []
        for unit in self.work_units():
            tracker.set_label(self._message(unit))
            if not self._config.dry_run:
                result = await self._execute(unit)
                if result.failed:
                    logger.debug(
                        "%s failed: %s", result.context, result.command
                    )
                results.append(result)
            tracker.increment()
        return results
