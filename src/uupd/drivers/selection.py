"""Startup choice between the image-native and legacy system drivers.

Exactly one of bootc and rpm-ostree may be enabled for a run. After
``select_system_driver()`` the orchestrator holds the chosen one as a
plain ``UpdateDriver`` and never branches on its type again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from uupd.drivers.bootc import BootcDriver
from uupd.drivers.rpm_ostree import RpmOstreeDriver
from uupd.exceptions import DriverError
from uupd.logger import get_logger

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner
    from uupd.drivers.system import SystemDriver
    from uupd.models import InitConfiguration

logger = get_logger(__name__)


@dataclass(slots=True)
class SystemDriverSelection:
    """Outcome of choosing between the image-native and legacy drivers.

    ``image_ready`` and ``legacy_ready`` record each driver's own probe,
    so a legacy driver that failed its probe never disables a working
    image-native one.
    """

    driver: SystemDriver
    image_native: BootcDriver
    legacy: RpmOstreeDriver
    is_image_native: bool
    image_ready: bool
    legacy_ready: bool


async def _try_prepare(driver: SystemDriver, *, dry_run: bool) -> bool:
    if dry_run:
        return True
    try:
        await driver.prepare()
    except DriverError as e:
        logger.debug("%s", e)
        return False
    return True


async def select_system_driver(
    init: InitConfiguration,
    runner: CommandRunner,
    *,
    enabled: bool = True,
) -> SystemDriverSelection:
    """Choose the system driver for this run.

    1. Probe the image-native driver and its compatibility.
    2. Always construct the legacy driver as a fallback candidate.
    3. Enable bootc iff it is compatible and ready; otherwise enable
       rpm-ostree iff it is ready. Never both.

    Args:
        init: Run settings
        runner: Command runner shared by the run
        enabled: False when the system module is switched off

    Returns:
        The selection; ``driver`` is the one to run

    """
    image_native = BootcDriver(init, runner)
    legacy = RpmOstreeDriver(init, runner)

    image_ready = await _try_prepare(image_native, dry_run=init.dry_run)
    legacy_ready = await _try_prepare(legacy, dry_run=init.dry_run)
    is_image_native = image_ready and await image_native.is_compatible()
    if not is_image_native:
        logger.debug("Using rpm-ostree fallback as system driver")

    allowed = enabled and not init.ci
    use_image = allowed and is_image_native
    use_legacy = allowed and not use_image and legacy_ready
    image_native.set_enabled(use_image)
    legacy.set_enabled(use_legacy)

    return SystemDriverSelection(
        driver=image_native if is_image_native else legacy,
        image_native=image_native,
        legacy=legacy,
        is_image_native=is_image_native,
        image_ready=image_ready,
        legacy_ready=legacy_ready,
    )
