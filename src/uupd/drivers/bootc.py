"""bootc driver: image-native system updates."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import orjson

from uupd.constants import BOOTC_BINARY, BOOTC_BINARY_ENV, BOOTC_NO_CHANGES
from uupd.drivers.system import SystemDriver
from uupd.exceptions import DriverError
from uupd.logger import get_logger

logger = get_logger(__name__)


def _booted(status: Any) -> dict[str, Any] | None:
    """Return ``status.booted`` from ``bootc status`` JSON, if any."""
    if not isinstance(status, dict):
        return None
    booted = (status.get("status") or {}).get("booted")
    return booted if isinstance(booted, dict) else None


class BootcDriver(SystemDriver):
    """Upgrade the booted OCI image with bootc."""

    binary_env = BOOTC_BINARY_ENV
    default_binary = BOOTC_BINARY

    async def _status(self) -> Any:
        result = await self._probe("status", "--format=json")
        if result.failed:
            msg = result.output.strip() or "bootc status failed"
            raise DriverError(msg, target=self.kind)
        try:
            return orjson.loads(result.stdout)
        except orjson.JSONDecodeError as e:
            msg = f"Malformed bootc status output: {e}"
            raise DriverError(msg, target=self.kind) from e

    async def is_compatible(self) -> bool:
        """Whether bootc can manage the booted deployment.

        A deployment with locally layered packages is reported as
        ``incompatible`` and must be upgraded with rpm-ostree instead.
        Probe failures count as incompatible. Always True in dry-run
        mode.
        """
        if self._config.dry_run:
            return True
        try:
            booted = _booted(await self._status())
        except DriverError as e:
            logger.debug("bootc compatibility probe failed: %s", e)
            return False
        if booted is None:
            return False
        return not booted.get("incompatible", False)

    async def _check_update(self) -> bool:
        result = await self._probe("upgrade", "--check")
        if result.failed:
            msg = result.output.strip() or "bootc upgrade --check failed"
            raise DriverError(msg, target=self.kind)
        return BOOTC_NO_CHANGES not in result.stdout

    async def _booted_timestamp(self) -> datetime | None:
        booted = _booted(await self._status()) or {}
        image = booted.get("image") or {}
        try:
            timestamp = datetime.fromisoformat(str(image.get("timestamp", "")))
        except ValueError as e:
            logger.debug("Ignoring unparseable image timestamp: %s", e)
            return None
        # bootc reports UTC; read an offset-less value the same way
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=UTC)
        return timestamp
