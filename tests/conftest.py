"""Pytest configuration and fixtures for uupd tests."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import orjson
import pytest

from uupd.core.command import CommandRunner
from uupd.models import CommandResult, InitConfiguration
from uupd.progress.tracker import StepTracker, TrackerMessage


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation for all loggers during tests.

    This allows pytest's caplog fixture to capture logs from all loggers,
    even those created with propagate=False in production code.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("uupd"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logger = logging.getLogger(name)
        logger.propagate = propagate_value


@dataclass(frozen=True)
class Call:
    """One command the fake runner was asked to launch."""

    argv: tuple[str, ...]
    context: str
    uid: int | None = None
    env: Mapping[str, str] | None = None


@dataclass(frozen=True)
class Script:
    prefix: tuple[str, ...]
    context: str | None
    returncode: int
    stdout: str
    stderr: str


class FakeRunner(CommandRunner):
    """CommandRunner that records calls and returns scripted results.

    Unscripted commands succeed with empty output. Later scripts win
    over earlier ones.
    """

    def __init__(self) -> None:
        super().__init__(systemd_run="/usr/bin/systemd-run")
        self.calls: list[Call] = []
        self._scripts: list[Script] = []

    def on(
        self,
        *prefix: str,
        context: str | None = None,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Script the result of commands starting with *prefix*."""
        self._scripts.append(
            Script(tuple(prefix), context, returncode, stdout, stderr)
        )

    def users(self, *users: tuple[int, str]) -> None:
        """Script ``loginctl list-users`` to report *users*."""
        payload = [{"uid": uid, "user": name} for uid, name in users]
        self.on(
            "/usr/bin/loginctl",
            "list-users",
            stdout=orjson.dumps(payload).decode(),
        )

    def _result(
        self, argv: Sequence[str], context: str
    ) -> CommandResult:
        argv = tuple(argv)
        for script in reversed(self._scripts):
            if argv[: len(script.prefix)] != script.prefix:
                continue
            if script.context is not None and script.context != context:
                continue
            return CommandResult.from_exit(
                context,
                argv,
                script.returncode,
                script.stdout,
                script.stderr,
            )
        return CommandResult.from_exit(context, argv, 0)

    async def run(self, argv, context, env=None) -> CommandResult:
        self.calls.append(Call(tuple(argv), context, None, env))
        return self._result(argv, context)

    async def run_as(self, uid, argv, context, env=None) -> CommandResult:
        self.calls.append(Call(tuple(argv), context, uid, env))
        return self._result(argv, context)

    def contexts(self) -> list[str]:
        """Contexts of every recorded call, in order."""
        return [call.context for call in self.calls]


class RecordingTracker(StepTracker):
    """StepTracker that remembers every label it was given."""

    def __init__(self, total: int = 100) -> None:
        super().__init__(total, progress_enabled=True)
        self.labels: list[TrackerMessage] = []

    def set_label(self, message: TrackerMessage) -> None:
        self.labels.append(message)
        super().set_label(message)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Provide a fresh scripted command runner."""
    return FakeRunner()


@pytest.fixture
def init() -> InitConfiguration:
    """Run settings for a real (non dry-run) run with an empty env."""
    return InitConfiguration.create(environment={})


@pytest.fixture
def dry_init() -> InitConfiguration:
    """Run settings for a dry run with an empty env."""
    return InitConfiguration.create(environment={}, dry_run=True)


@pytest.fixture
def tracker() -> RecordingTracker:
    """Provide a tracker that records labels."""
    return RecordingTracker()


@pytest.fixture
def tracker_factory():
    """Provide the RecordingTracker class for tests needing several."""
    return RecordingTracker


@pytest.fixture
def runner_factory():
    """Provide the FakeRunner class for tests needing several."""
    return FakeRunner
