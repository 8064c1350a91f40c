"""Process-level locking utilities using fcntl.flock.

This module provides LockManager for ensuring only one uupd run mutates
package-manager state at a time, using fcntl.flock on a lock file.
"""

from __future__ import annotations

import asyncio
import fcntl
import os
from pathlib import Path
from typing import IO, TYPE_CHECKING, Self

from uupd.constants import LOCKFILE_ENV, LOCKFILE_PATH
from uupd.exceptions import LockError
from uupd.logger import get_logger

if TYPE_CHECKING:
    import types
    from collections.abc import Mapping

logger = get_logger(__name__)


def resolve_lock_path(environment: Mapping[str, str] | None = None) -> Path:
    """Return the lock file path, honoring ``UUPD_LOCKFILE_PATH``."""
    env = os.environ if environment is None else environment
    override = env.get(LOCKFILE_ENV)
    return Path(override) if override else LOCKFILE_PATH


class LockManager:
    """Async context manager for process-level file locking.

    Uses a lock file with non-blocking exclusive lock (LOCK_EX | LOCK_NB)
    so a second run fails immediately instead of queuing behind the
    first one.

    Attributes:
        _lock_path: Path to the lock file.
        _lock_file: Open file object for lock file (None when unlocked).

    Example:
        >>> async with LockManager(Path("/run/uupd.lock")):
        ...     # Exclusive lock held for this block
        ...     pass

    """

    def __init__(self, lock_path: Path) -> None:
        """Initialize LockManager with lock file path.

        Args:
            lock_path: Path to the lock file to be created/used.

        """
        self._lock_path = lock_path
        self._lock_file: IO[str] | None = None

    @property
    def locked(self) -> bool:
        """Whether this manager currently holds the lock."""
        return self._lock_file is not None

    def _acquire(self) -> None:
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)

        lock_file = None
        try:
            # "a+" creates the file without truncating the holder's pid
            lock_file = self._lock_path.open("a+", encoding="utf-8")
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            lock_file.seek(0)
            lock_file.truncate()
            lock_file.write(f"{os.getpid()}\n")
            lock_file.flush()
            self._lock_file = lock_file
        except BlockingIOError as e:
            if lock_file is not None:
                lock_file.close()
            msg = "Another uupd instance is already running"
            raise LockError(msg, target=str(self._lock_path), cause=e) from e
        except OSError as e:
            if lock_file is not None:
                lock_file.close()
            msg = f"Failed to acquire lock: {e}"
            raise LockError(msg, target=str(self._lock_path), cause=e) from e

    async def __aenter__(self) -> Self:
        """Acquire lock when entering context.

        Returns:
            Self for use in async context manager.

        Raises:
            LockError: If another instance holds the lock, or if file
                operations fail.

        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._acquire)
        logger.debug("Acquired lock %s", self._lock_path)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Release lock when exiting context.

        Closing the file descriptor releases the flock. Safe to call even
        if the lock was never acquired.
        """
        if self._lock_file is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._lock_file.close)
            self._lock_file = None
            logger.debug("Released lock %s", self._lock_path)
