"""Hardware pre-flight checks.

Updates are skipped when the machine is on a low battery, busy, or short
on memory. Each check reads procfs/sysfs directly; an entry that does
not exist on this machine (no battery, no /proc) passes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from uupd.exceptions import HardwareCheckError
from uupd.logger import get_logger

if TYPE_CHECKING:
    from uupd.config.settings import HardwareThresholds

logger = get_logger(__name__)

POWER_SUPPLY_DIR = Path("/sys/class/power_supply")
LOADAVG_PATH = Path("/proc/loadavg")
MEMINFO_PATH = Path("/proc/meminfo")


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one hardware check."""

    name: str
    passed: bool
    detail: str


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None


def check_battery(
    min_percent: int, power_supply_dir: Path | None = None
) -> CheckResult:
    """Pass when on AC power or every battery is above *min_percent*."""
    power_supply_dir = power_supply_dir or POWER_SUPPLY_DIR
    if not power_supply_dir.is_dir():
        return CheckResult("battery", passed=True, detail="no power supply")

    batteries: list[int] = []
    for supply in sorted(power_supply_dir.iterdir()):
        kind = _read(supply / "type")
        if kind == "Mains" and _read(supply / "online") == "1":
            return CheckResult("battery", passed=True, detail="on AC power")
        if kind == "Battery":
            capacity = _read(supply / "capacity")
            if capacity is not None and capacity.isdigit():
                batteries.append(int(capacity))

    if not batteries:
        return CheckResult("battery", passed=True, detail="no battery")
    lowest = min(batteries)
    return CheckResult(
        "battery",
        passed=lowest >= min_percent,
        detail=f"battery at {lowest}% (minimum {min_percent}%)",
    )


def check_cpu_load(
    max_percent: int,
    loadavg_path: Path | None = None,
    cpu_count: int | None = None,
) -> CheckResult:
    """Pass when the 1-minute load per CPU is below *max_percent*."""
    loadavg_path = loadavg_path or LOADAVG_PATH
    raw = _read(loadavg_path)
    if not raw:
        return CheckResult("cpu", passed=True, detail="load unknown")
    try:
        load = float(raw.split()[0])
    except ValueError:
        return CheckResult("cpu", passed=True, detail="load unknown")
    cpus = cpu_count or os.cpu_count() or 1
    percent = load / cpus * 100
    return CheckResult(
        "cpu",
        passed=percent < max_percent,
        detail=f"CPU load at {percent:.0f}% (maximum {max_percent}%)",
    )


def check_memory(
    max_percent: int, meminfo_path: Path | None = None
) -> CheckResult:
    """Pass when used memory is below *max_percent*."""
    meminfo_path = meminfo_path or MEMINFO_PATH
    raw = _read(meminfo_path)
    if not raw:
        return CheckResult("memory", passed=True, detail="memory unknown")
    values: dict[str, int] = {}
    for line in raw.splitlines():
        key, _, rest = line.partition(":")
        fields = rest.split()
        if fields and fields[0].isdigit():
            values[key.strip()] = int(fields[0])
    total = values.get("MemTotal")
    available = values.get("MemAvailable")
    if not total or available is None:
        return CheckResult("memory", passed=True, detail="memory unknown")
    percent = (total - available) / total * 100
    return CheckResult(
        "memory",
        passed=percent < max_percent,
        detail=f"memory use at {percent:.0f}% (maximum {max_percent}%)",
    )


def run_hw_checks(thresholds: HardwareThresholds) -> list[CheckResult]:
    """Run every hardware check.

    Returns:
        All check results, when every check passed

    Raises:
        HardwareCheckError: Listing every failed check

    """
    results = [
        check_battery(thresholds.min_battery_percent),
        check_cpu_load(thresholds.max_cpu_load_percent),
        check_memory(thresholds.max_memory_percent),
    ]
    for result in results:
        logger.debug(
            "Hardware check %s: %s (%s)",
            result.name,
            "passed" if result.passed else "failed",
            result.detail,
        )
    failed = [r for r in results if not r.passed]
    if failed:
        raise HardwareCheckError("; ".join(r.detail for r in failed))
    return results
