"""rpm-ostree driver: legacy fallback for layered deployments."""

from __future__ import annotations

from datetime import UTC, datetime

import orjson

from uupd.constants import (
    RPMOSTREE_BINARY,
    RPMOSTREE_BINARY_ENV,
    RPMOSTREE_NO_UPDATES_EXIT,
)
from uupd.drivers.system import SystemDriver
from uupd.exceptions import DriverError
from uupd.logger import get_logger

logger = get_logger(__name__)


class RpmOstreeDriver(SystemDriver):
    """Upgrade the booted deployment with rpm-ostree."""

    binary_env = RPMOSTREE_BINARY_ENV
    default_binary = RPMOSTREE_BINARY

    async def _check_update(self) -> bool:
        result = await self._probe("upgrade", "--check")
        if result.returncode == RPMOSTREE_NO_UPDATES_EXIT:
            return False
        if result.failed:
            msg = result.output.strip() or "rpm-ostree upgrade --check failed"
            raise DriverError(msg, target=self.kind)
        return True

    async def _booted_timestamp(self) -> datetime | None:
        result = await self._probe("status", "--json", "--booted")
        if result.failed:
            msg = result.output.strip() or "rpm-ostree status failed"
            raise DriverError(msg, target=self.kind)
        try:
            status = orjson.loads(result.stdout)
        except orjson.JSONDecodeError as e:
            msg = f"Malformed rpm-ostree status output: {e}"
            raise DriverError(msg, target=self.kind) from e

        deployments = (
            status.get("deployments") if isinstance(status, dict) else None
        ) or []
        booted = next(
            (
                d
                for d in deployments
                if isinstance(d, dict) and d.get("booted")
            ),
            deployments[0] if deployments else {},
        )
        try:
            return datetime.fromtimestamp(int(booted["timestamp"]), UTC)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.debug("Ignoring unparseable deployment timestamp: %s", e)
            return None
