"""Update orchestration for a single uupd run.

The orchestrator is the only component that sees every driver. It walks
a fixed sequence of phases:

    Locking → Initializing → Probing → Accounting → Executing
    → Reporting → Done

Only pre-flight problems (lock busy, session enumeration, hardware
checks) abort a run. Everything that goes wrong inside a driver is
recorded as a failed CommandResult and reported at the end.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from uupd.checks import run_hw_checks
from uupd.config import Settings
from uupd.constants import EXIT_FAILURE, EXIT_SUCCESS
from uupd.core.command import CommandRunner
from uupd.core.locking import LockManager, resolve_lock_path
from uupd.core.notify import Notifier
from uupd.core.session import list_users
from uupd.drivers import (
    BrewDriver,
    DistroboxDriver,
    FlatpakDriver,
    select_system_driver,
)
from uupd.exceptions import DriverError, DriverUnavailableError
from uupd.logger import get_logger
from uupd.models import CommandResult
from uupd.progress import ProgressDisplay, StepTracker

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from uupd.drivers import SystemDriverSelection, UpdateDriver
    from uupd.models import InitConfiguration

logger = get_logger(__name__)

STALE_SUMMARY = "System Warning"
STALE_BODY = (
    "There hasn't been an update in over a month. "
    "Consider rebooting or running updates manually"
)
FAILURE_SUMMARY = "Updates failed"
JOURNAL_HINT = "journalctl -exu uupd.service"


class RunPhase(Enum):
    """Phases of an orchestration run, in order."""

    LOCKING = "locking"
    INITIALIZING = "initializing"
    PROBING = "probing"
    ACCOUNTING = "accounting"
    EXECUTING = "executing"
    REPORTING = "reporting"
    DONE = "done"


@dataclass(slots=True)
class RunReport:
    """Outcome of one orchestration run."""

    results: list[CommandResult] = field(default_factory=list)
    total_steps: int = 0
    completed_steps: int = 0
    outdated: bool = False
    system_update_available: bool = False

    @property
    def successes(self) -> list[CommandResult]:
        """Results that did not fail, in execution order."""
        return [r for r in self.results if not r.failed]

    @property
    def failures(self) -> list[CommandResult]:
        """Results that failed, in execution order."""
        return [r for r in self.results if r.failed]

    @property
    def exit_code(self) -> int:
        """Process exit status for this report."""
        return EXIT_FAILURE if self.failures else EXIT_SUCCESS


def format_result(result: CommandResult) -> str:
    """Render *result* as a log block with its indented output."""
    lines = [f"{result.context}:", f"  Command: {result.command}"]
    output = result.output.strip()
    if output:
        lines.append(textwrap.indent(output, "    "))
    return "\n".join(lines)


def driver_failure(driver: UpdateDriver, error: DriverError) -> CommandResult:
    """Record a DriverError raised during ``update()`` as a result."""
    return CommandResult(
        context=driver.config().description,
        command_line=(),
        stderr=str(error),
        returncode=None,
        failed=True,
    )


class UpdateOrchestrator:
    """Run every enabled driver once, in a fixed order.

    Drivers are built from ``init``; tests and callers that need a
    different set of non-system drivers pass them explicitly.
    """

    def __init__(
        self,
        init: InitConfiguration,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        *,
        lock_path: Path | None = None,
        hw_check: bool = False,
        drivers: Sequence[UpdateDriver] | None = None,
        progress_output: TextIO | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            init: Run-wide settings shared by every driver
            settings: Settings file contents (defaults when None)
            runner: Command runner shared by drivers and probes
            lock_path: Lock file path (resolved from the environment
                when None)
            hw_check: Run the hardware checks before any driver
            drivers: Non-system drivers in execution order
            progress_output: Stream the progress bar is drawn on

        """
        self.init = init
        self.settings = settings or Settings()
        self.runner = runner or CommandRunner()
        self.lock_path = lock_path or resolve_lock_path(init.environment)
        self.hw_check = hw_check
        self.progress_output = progress_output
        self.phase = RunPhase.LOCKING
        self._drivers: list[UpdateDriver] = (
            list(drivers)
            if drivers is not None
            else [
                BrewDriver(init, self.runner),
                FlatpakDriver(init, self.runner),
                DistroboxDriver(init, self.runner),
            ]
        )
        self.notifier = Notifier(self.runner, enabled=not init.dry_run)

    async def run(self) -> RunReport:
        """Perform one complete update run.

        Returns:
            RunReport with every collected result

        Raises:
            LockError: If another run holds the lock
            SessionError: If user sessions cannot be enumerated
            HardwareCheckError: If a hardware check fails

        """
        self.phase = RunPhase.LOCKING
        try:
            async with LockManager(self.lock_path):
                return await self._run_locked()
        finally:
            self.phase = RunPhase.DONE

    async def _run_locked(self) -> RunReport:
        self.phase = RunPhase.INITIALIZING
        if self.hw_check and not self.init.dry_run:
            run_hw_checks(self.settings.hardware)
        users = await list_users(self.runner)
        self.notifier.users = tuple(users)
        for driver in self._drivers:
            await self._initialize(driver)
            driver.set_users(users)

        self.phase = RunPhase.PROBING
        report = RunReport()
        selection = await select_system_driver(
            self.init,
            self.runner,
            enabled=self.settings.module_enabled("system"),
        )
        system = await self._probe_system(selection, report)

        self.phase = RunPhase.ACCOUNTING
        drivers = [system, *self._drivers]
        report.total_steps = sum(d.steps() for d in drivers)
        tracker = StepTracker(
            report.total_steps, progress_enabled=self.init.progress_enabled
        )
        logger.debug("Total steps for this run: %d", report.total_steps)

        self.phase = RunPhase.EXECUTING
        display = (
            ProgressDisplay(tracker, output=self.progress_output)
            if self.init.progress_enabled
            else None
        )
        if display is not None:
            await display.start()
        try:
            for driver in drivers:
                report.results.extend(await self._execute(driver, tracker))
        finally:
            if display is not None:
                await display.stop()
        report.completed_steps = tracker.completed

        self.phase = RunPhase.REPORTING
        await self._report(report)
        return report

    async def _initialize(self, driver: UpdateDriver) -> None:
        module = driver.name.lower()
        if not self.settings.module_enabled(module):
            logger.debug("Module %s disabled by settings", module)
            driver.set_enabled(False)
            return
        if self.init.dry_run:
            return
        try:
            await driver.prepare()
        except DriverUnavailableError as e:
            logger.debug("Skipping %s: %s", driver.name, e)
            driver.set_enabled(False)
        except DriverError as e:
            logger.warning("%s, disabling %s", e, driver.name)
            driver.set_enabled(False)

    async def _probe_system(
        self, selection: SystemDriverSelection, report: RunReport
    ) -> UpdateDriver:
        system = selection.driver
        if not system.config().enabled:
            logger.debug("System driver disabled for this run")
            return system

        try:
            report.outdated = await system.is_outdated()
        except DriverError as e:
            logger.warning("Failed to check image age: %s", e)
        if report.outdated:
            logger.warning("%s: %s", STALE_SUMMARY, STALE_BODY)
            await self.notifier.notify(STALE_SUMMARY, STALE_BODY)

        try:
            report.system_update_available = (
                await system.check_availability()
            )
        except DriverError as e:
            logger.warning("Failed to check for system update: %s", e)
        if not report.system_update_available:
            logger.info("No system update available")
            system.set_enabled(False)
        return system

    async def _execute(
        self, driver: UpdateDriver, tracker: StepTracker
    ) -> list[CommandResult]:
        if not driver.config().enabled:
            return []
        target = tracker.completed + driver.steps()
        try:
            return await driver.update(tracker)
        except DriverError as e:
            logger.warning("%s", e)
            return [driver_failure(driver, e)]
        finally:
            tracker.advance_to(target)

    async def _report(self, report: RunReport) -> None:
        if self.init.verbose:
            # Failures are logged once, in the summary below
            for result in report.successes:
                logger.info("%s", format_result(result))

        failures = report.failures
        if not failures:
            logger.info("Updates Completed Successfully")
            return

        logger.warning(
            "Updates Completed with Failures:\n%s",
            "\n".join(format_result(r) for r in failures),
        )
        contexts = ", ".join(r.context for r in failures)
        await self.notifier.notify(
            FAILURE_SUMMARY,
            f"Failed: {contexts}. See {JOURNAL_HINT} for details",
            urgency="critical",
        )

    async def _select_probe_driver(self) -> UpdateDriver:
        selection = await select_system_driver(self.init, self.runner)
        if not (selection.is_image_native or selection.legacy_ready):
            msg = "Neither bootc nor rpm-ostree is available"
            raise DriverError(msg, target="System")
        return selection.driver

    async def check_system_update(self) -> bool:
        """Return True when a system image update is available.

        Raises:
            DriverError: If no system driver is usable or the check fails

        """
        driver = await self._select_probe_driver()
        return await driver.check_availability()

    async def check_image_outdated(self) -> bool:
        """Return True when the booted image is more than a month old.

        Raises:
            DriverError: If no system driver is usable or the check fails

        """
        driver = await self._select_probe_driver()
        return await driver.is_outdated()
