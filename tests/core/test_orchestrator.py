"""Tests for UpdateOrchestrator run phases and reporting."""

import io
import logging
from pathlib import Path

import orjson
import pytest

from uupd.config import HardwareThresholds, Settings
from uupd.core.locking import LockManager
from uupd.core.orchestrator import (
    RunPhase,
    RunReport,
    UpdateOrchestrator,
    format_result,
)
from uupd.drivers import BrewDriver, DistroboxDriver, FlatpakDriver
from uupd.exceptions import (
    DriverError,
    HardwareCheckError,
    LockError,
    SessionError,
)
from uupd.models import CommandResult, InitConfiguration

FLATPAK_ARGV = ("/usr/bin/flatpak", "update", "-y", "--noninteractive")
USERS = ((1000, "alice"), (1001, "bob"), (1002, "carol"))
ALL_MODULES = dict.fromkeys(("system", "brew", "flatpak", "distrobox"), True)


def settings_with(**modules: bool) -> Settings:
    return Settings(modules={**ALL_MODULES, **modules})


@pytest.fixture
def environment(tmp_path: Path) -> dict[str, str]:
    """Environment with a real brew binary and no system tools."""
    brew = tmp_path / "brew"
    brew.write_text("#!/bin/sh\n")
    return {
        "UUPD_BREW_BINARY": str(brew),
        "UUPD_BOOTC_BINARY": str(tmp_path / "missing-bootc"),
        "UUPD_RPMOSTREE_BINARY": str(tmp_path / "missing-rpm-ostree"),
    }


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "uupd.lock"


def make_orchestrator(
    init: InitConfiguration,
    runner,
    lock_path: Path,
    tmp_path: Path,
    settings: Settings | None = None,
    **kwargs,
) -> UpdateOrchestrator:
    drivers = kwargs.pop(
        "drivers",
        [
            BrewDriver(init, runner, prefix=tmp_path),
            FlatpakDriver(init, runner),
        ],
    )
    return UpdateOrchestrator(
        init,
        settings or settings_with(system=False),
        runner,
        lock_path=lock_path,
        drivers=drivers,
        **kwargs,
    )


class TestRunReport:
    def test_partition_and_exit_code(self) -> None:
        ok = CommandResult.from_exit("A", ["a"], 0)
        bad = CommandResult.from_exit("B", ["b"], 1)
        report = RunReport(results=[ok, bad])

        assert report.successes == [ok]
        assert report.failures == [bad]
        assert report.exit_code == 1
        assert RunReport(results=[ok]).exit_code == 0

    def test_format_result_indents_output(self) -> None:
        result = CommandResult.from_exit(
            "System Apps", ["flatpak", "update"], 1, "line1\nline2", "oops"
        )
        assert format_result(result) == (
            "System Apps:\n"
            "  Command: flatpak update\n"
            "    line1\n"
            "    line2\n"
            "    oops"
        )


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_one_failing_user_action(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users(*USERS)
        fake_runner.on(
            *FLATPAK_ARGV,
            context="Apps for User: bob",
            returncode=1,
            stderr="error: disk full",
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        report = await orchestrator.run()

        assert report.total_steps == 5
        assert report.completed_steps == 5
        assert len(report.results) == 5
        assert [r.context for r in report.failures] == ["Apps for User: bob"]
        assert report.exit_code == 1
        assert orchestrator.phase is RunPhase.DONE

    @pytest.mark.asyncio
    async def test_results_follow_execution_order(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users((1000, "alice"))
        orchestrator = make_orchestrator(
            init,
            fake_runner,
            lock_path,
            tmp_path,
            drivers=[
                BrewDriver(init, fake_runner, prefix=tmp_path),
                FlatpakDriver(init, fake_runner),
                DistroboxDriver(init, fake_runner),
            ],
        )

        report = await orchestrator.run()

        assert [r.context for r in report.results] == [
            "CLI Apps",
            "System Apps",
            "Apps for User: alice",
            "Rootful Distroboxes",
            "Distroboxes for User: alice",
        ]
        assert report.failures == []

    @pytest.mark.asyncio
    async def test_failure_summary_logged_and_notified(
        self, environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users((1000, "alice"))
        fake_runner.on(*FLATPAK_ARGV, context="System Apps", returncode=1)
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with caplog.at_level(logging.INFO, logger="uupd"):
            await orchestrator.run()

        assert "Updates Completed with Failures:" in caplog.text
        assert "Command: /usr/bin/flatpak update -y --noninteractive" in (
            caplog.text
        )
        notify = [c for c in fake_runner.calls if c.context == "Notify alice"]
        assert len(notify) == 1
        assert notify[0].uid == 1000
        assert "--urgency=critical" in notify[0].argv
        assert notify[0].env == {
            "DBUS_SESSION_BUS_ADDRESS": "unix:path=/run/user/1000/bus"
        }

    @pytest.mark.asyncio
    async def test_success_logs_only_summary(
        self, environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users()
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with caplog.at_level(logging.INFO, logger="uupd"):
            report = await orchestrator.run()

        assert report.exit_code == 0
        assert "Updates Completed Successfully" in caplog.text
        assert "Command:" not in caplog.text

    @pytest.mark.asyncio
    async def test_verbose_logs_every_result(
        self, environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False, verbose=True
        )
        fake_runner.users()
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with caplog.at_level(logging.INFO, logger="uupd"):
            await orchestrator.run()

        assert "CLI Apps:" in caplog.text
        assert "System Apps:" in caplog.text

    @pytest.mark.asyncio
    async def test_verbose_logs_each_failure_once(
        self, environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False, verbose=True
        )
        fake_runner.users()
        fake_runner.on(
            *FLATPAK_ARGV,
            context="System Apps",
            returncode=1,
            stderr="error: remote gone",
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with caplog.at_level(logging.INFO, logger="uupd"):
            await orchestrator.run()

        assert caplog.text.count("error: remote gone") == 1
        assert caplog.text.count("CLI Apps:") == 1
        assert "Updates Completed with Failures" in caplog.text

    @pytest.mark.asyncio
    async def test_progress_bar_drawn(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(environment=environment)
        fake_runner.users()
        output = io.StringIO()
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path, progress_output=output
        )

        await orchestrator.run()

        assert output.getvalue().splitlines()[-1].startswith("[====")
        assert "(2/2)" in output.getvalue()


class TestDryRun:
    @pytest.mark.asyncio
    async def test_dry_run_runs_nothing_but_counts_everything(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, dry_run=True, progress_enabled=False
        )
        fake_runner.users(*USERS)
        orchestrator = make_orchestrator(
            init,
            fake_runner,
            lock_path,
            tmp_path,
            settings=settings_with(),
        )

        report = await orchestrator.run()

        # system 1 + brew 1 + flatpak 4
        assert report.total_steps == 6
        assert report.completed_steps == 6
        assert report.results == []
        assert fake_runner.contexts() == ["List users"]


class TestDriverFailures:
    @pytest.mark.asyncio
    async def test_prepare_failure_disables_driver(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment={
                **environment,
                "UUPD_BREW_BINARY": str(tmp_path / "missing"),
            },
            progress_enabled=False,
        )
        fake_runner.users()
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        report = await orchestrator.run()

        assert report.total_steps == 1
        assert [r.context for r in report.results] == ["System Apps"]

    @pytest.mark.asyncio
    async def test_missing_tool_is_skipped_quietly(
        self, environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users()
        orchestrator = make_orchestrator(
            init,
            fake_runner,
            lock_path,
            tmp_path,
            drivers=[
                BrewDriver(init, fake_runner, prefix=tmp_path / "absent"),
                FlatpakDriver(init, fake_runner),
            ],
        )

        with caplog.at_level(logging.DEBUG, logger="uupd"):
            report = await orchestrator.run()

        assert report.total_steps == 1
        assert "Skipping Brew" in caplog.text
        assert not [
            r for r in caplog.records if r.levelno >= logging.WARNING
        ]

    @pytest.mark.asyncio
    async def test_unexpected_prepare_failure_warns(
        self, environment, fake_runner, lock_path, tmp_path, caplog, mocker
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users()
        mocker.patch.object(
            BrewDriver,
            "prepare",
            side_effect=DriverError("permission denied", target="Brew"),
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with caplog.at_level(logging.WARNING, logger="uupd"):
            report = await orchestrator.run()

        assert report.total_steps == 1
        assert "permission denied, disabling Brew" in caplog.text

    @pytest.mark.asyncio
    async def test_module_switch_disables_driver(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users((1000, "alice"))
        orchestrator = make_orchestrator(
            init,
            fake_runner,
            lock_path,
            tmp_path,
            settings=settings_with(system=False, flatpak=False),
        )

        report = await orchestrator.run()

        assert report.total_steps == 1
        assert [r.context for r in report.results] == ["CLI Apps"]

    @pytest.mark.asyncio
    async def test_update_error_recorded_and_progress_advanced(
        self, mocker, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(
            environment=environment, progress_enabled=False
        )
        fake_runner.users((1000, "alice"))
        mocker.patch.object(
            FlatpakDriver, "update", side_effect=DriverError("crashed")
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        report = await orchestrator.run()

        assert report.total_steps == 3
        assert report.completed_steps == 3
        assert [r.context for r in report.failures] == ["System Apps"]
        assert "crashed" in report.failures[0].stderr


class TestPreflight:
    @pytest.mark.asyncio
    async def test_lock_held_aborts_before_any_work(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(environment=environment)
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        async with LockManager(lock_path):
            with pytest.raises(LockError):
                await orchestrator.run()

        assert fake_runner.calls == []
        assert orchestrator.phase is RunPhase.DONE

    @pytest.mark.asyncio
    async def test_session_failure_is_fatal_and_releases_lock(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(environment=environment)
        fake_runner.on("/usr/bin/loginctl", returncode=1, stderr="no bus")
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with pytest.raises(SessionError):
            await orchestrator.run()

        assert fake_runner.contexts() == ["List users"]
        async with LockManager(lock_path) as lock:
            assert lock.locked

    @pytest.mark.asyncio
    async def test_hardware_check_failure_is_fatal(
        self, mocker, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        mocker.patch(
            "uupd.core.orchestrator.run_hw_checks",
            side_effect=HardwareCheckError("battery at 5%"),
        )
        init = InitConfiguration.create(environment=environment)
        orchestrator = make_orchestrator(
            init,
            fake_runner,
            lock_path,
            tmp_path,
            settings=Settings(hardware=HardwareThresholds()),
            hw_check=True,
        )

        with pytest.raises(HardwareCheckError):
            await orchestrator.run()

        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_hardware_check_skipped_in_dry_run(
        self, mocker, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        hw = mocker.patch("uupd.core.orchestrator.run_hw_checks")
        init = InitConfiguration.create(
            environment=environment, dry_run=True, progress_enabled=False
        )
        fake_runner.users()
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path, hw_check=True
        )

        await orchestrator.run()

        hw.assert_not_called()


def bootc_status(timestamp: str) -> str:
    return orjson.dumps(
        {
            "status": {
                "booted": {
                    "image": {"timestamp": timestamp},
                    "incompatible": False,
                }
            }
        }
    ).decode()


@pytest.fixture
def bootc_environment(environment, tmp_path: Path) -> dict[str, str]:
    """Environment where bootc exists and manages the image."""
    bootc = tmp_path / "bootc"
    bootc.write_text("#!/bin/sh\n")
    return {**environment, "UUPD_BOOTC_BINARY": str(bootc)}


class TestSystemProbes:
    @pytest.mark.asyncio
    async def test_outdated_image_warns_and_skips_when_no_update(
        self, bootc_environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        bootc = bootc_environment["UUPD_BOOTC_BINARY"]
        fake_runner.users((1000, "alice"))
        fake_runner.on(
            bootc, "status", stdout=bootc_status("2020-01-01T00:00:00Z")
        )
        fake_runner.on(
            bootc, "upgrade", "--check", stdout="No changes in: ghcr.io/x"
        )
        init = InitConfiguration.create(
            environment=bootc_environment, progress_enabled=False
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path, settings=settings_with()
        )

        with caplog.at_level(logging.WARNING, logger="uupd"):
            report = await orchestrator.run()

        assert report.outdated is True
        assert report.system_update_available is False
        assert "There hasn't been an update in over a month" in caplog.text
        assert "Notify alice" in fake_runner.contexts()
        assert (bootc, "upgrade") not in [c.argv for c in fake_runner.calls]
        assert report.total_steps == 3

    @pytest.mark.asyncio
    async def test_available_update_runs_system_first(
        self, bootc_environment, fake_runner, lock_path, tmp_path
    ) -> None:
        bootc = bootc_environment["UUPD_BOOTC_BINARY"]
        fake_runner.users()
        fake_runner.on(
            bootc, "status", stdout=bootc_status("2099-01-01T00:00:00Z")
        )
        fake_runner.on(bootc, "upgrade", "--check", stdout="Queued")
        init = InitConfiguration.create(
            environment=bootc_environment, progress_enabled=False
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path, settings=settings_with()
        )

        report = await orchestrator.run()

        assert report.system_update_available is True
        assert report.outdated is False
        assert report.results[0].context == "System Image"
        assert report.results[0].command_line == (bootc, "upgrade")
        assert report.total_steps == report.completed_steps == 3

    @pytest.mark.asyncio
    async def test_probe_errors_are_warnings(
        self, bootc_environment, fake_runner, lock_path, tmp_path, caplog
    ) -> None:
        bootc = bootc_environment["UUPD_BOOTC_BINARY"]
        fake_runner.users()
        fake_runner.on(
            bootc, "status", stdout=bootc_status("2099-01-01T00:00:00Z")
        )
        fake_runner.on(bootc, "upgrade", "--check", returncode=1)
        init = InitConfiguration.create(
            environment=bootc_environment, progress_enabled=False
        )
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path, settings=settings_with()
        )

        with caplog.at_level(logging.WARNING, logger="uupd"):
            report = await orchestrator.run()

        assert "Failed to check for system update" in caplog.text
        assert report.system_update_available is False
        assert report.exit_code == 0

    @pytest.mark.asyncio
    async def test_check_system_update(
        self, bootc_environment, fake_runner, lock_path, tmp_path
    ) -> None:
        bootc = bootc_environment["UUPD_BOOTC_BINARY"]
        fake_runner.on(
            bootc, "status", stdout=bootc_status("2099-01-01T00:00:00Z")
        )
        fake_runner.on(bootc, "upgrade", "--check", stdout="Queued")
        init = InitConfiguration.create(environment=bootc_environment)
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        assert await orchestrator.check_system_update() is True
        assert await orchestrator.check_image_outdated() is False
        assert not lock_path.exists()

    @pytest.mark.asyncio
    async def test_probe_without_system_tools(
        self, environment, fake_runner, lock_path, tmp_path
    ) -> None:
        init = InitConfiguration.create(environment=environment)
        orchestrator = make_orchestrator(
            init, fake_runner, lock_path, tmp_path
        )

        with pytest.raises(DriverError, match="Neither bootc nor rpm-ostree"):
            await orchestrator.check_system_update()
