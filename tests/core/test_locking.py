"""Tests for LockManager: fcntl.flock-based process-level locking."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from uupd.constants import LOCKFILE_PATH
from uupd.core.locking import LockManager, resolve_lock_path
from uupd.exceptions import LockError


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    """Provide a temporary lock file path."""
    return tmp_path / "run" / "uupd.lock"


@pytest.mark.asyncio
async def test_lock_manager_successful_acquisition(lock_path: Path) -> None:
    """Test LockManager acquires the lock and records the pid."""
    async with LockManager(lock_path) as lock_mgr:
        assert lock_mgr.locked
        assert lock_path.read_text().strip() == str(os.getpid())


@pytest.mark.asyncio
async def test_lock_manager_creates_parent_directory(tmp_path: Path) -> None:
    """Test LockManager creates parent directory if missing."""
    lock_path = tmp_path / "deeply" / "nested" / "uupd.lock"
    assert not lock_path.parent.exists()

    async with LockManager(lock_path):
        assert lock_path.parent.exists()


@pytest.mark.asyncio
async def test_lock_manager_releases_lock_on_exception(
    lock_path: Path,
) -> None:
    """Test LockManager releases lock even when exception is raised."""
    lock_mgr = LockManager(lock_path)

    with pytest.raises(ValueError, match="Test exception"):
        async with lock_mgr:
            raise ValueError("Test exception")

    assert not lock_mgr.locked
    async with LockManager(lock_path) as again:
        assert again.locked


@pytest.mark.asyncio
async def test_lock_manager_fails_fast_when_lock_held(
    lock_path: Path,
) -> None:
    """Test a second holder is rejected immediately."""
    async with LockManager(lock_path):
        with pytest.raises(
            LockError, match="Another uupd instance is already running"
        ) as exc_info:
            async with LockManager(lock_path):
                pass

    assert isinstance(exc_info.value.cause, BlockingIOError)
    assert exc_info.value.target == str(lock_path)


@pytest.mark.asyncio
async def test_lock_manager_rejected_attempt_keeps_holder_pid(
    lock_path: Path,
) -> None:
    """Test a rejected second run leaves the holder's pid in place."""
    async with LockManager(lock_path):
        before = lock_path.read_text()
        with pytest.raises(LockError):
            async with LockManager(lock_path):
                pass

        assert lock_path.read_text() == before == f"{os.getpid()}\n"


@pytest.mark.asyncio
async def test_lock_manager_replaces_stale_pid(lock_path: Path) -> None:
    """Test a leftover pid from an earlier run is overwritten."""
    lock_path.parent.mkdir(parents=True)
    lock_path.write_text("999999\nleftover\n")

    async with LockManager(lock_path):
        assert lock_path.read_text() == f"{os.getpid()}\n"


@pytest.mark.asyncio
async def test_lock_manager_wraps_os_errors(lock_path: Path) -> None:
    """Test unexpected OS errors become LockError."""
    with (
        patch("fcntl.flock", side_effect=PermissionError("denied")),
        pytest.raises(LockError, match="Failed to acquire lock"),
    ):
        async with LockManager(lock_path):
            pass


def test_resolve_lock_path_default() -> None:
    assert resolve_lock_path({}) == LOCKFILE_PATH


def test_resolve_lock_path_override(tmp_path: Path) -> None:
    env = {"UUPD_LOCKFILE_PATH": str(tmp_path / "x.lock")}
    assert resolve_lock_path(env) == tmp_path / "x.lock"
