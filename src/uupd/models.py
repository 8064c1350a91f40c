"""Data types shared by drivers and the orchestrator.

These are plain value objects without IO: the outcome of one external
command, the immutable configuration snapshot of a driver, and the
settings every driver is constructed from.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Self


def _frozen_mapping(values: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command invocation.

    Attributes:
        context: Unit of work that produced this result,
            e.g. "System Apps" or "Apps for User: alice"
        command_line: Literal argv that was executed
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit status, None when it never started
        failed: True iff the command exited non-zero or could not start

    """

    context: str
    command_line: tuple[str, ...]
    stdout: str = ""
    stderr: str = ""
    returncode: int | None = 0
    failed: bool = False

    @classmethod
    def from_exit(
        cls,
        context: str,
        argv: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> Self:
        """Build a result from a finished process."""
        return cls(
            context=context,
            command_line=tuple(argv),
            stdout=stdout,
            stderr=stderr,
            returncode=returncode,
            failed=returncode != 0,
        )

    @classmethod
    def launch_failure(
        cls, context: str, argv: Sequence[str], error: BaseException
    ) -> Self:
        """Build a failed result for a command that could not start."""
        return cls(
            context=context,
            command_line=tuple(argv),
            stderr=str(error),
            returncode=None,
            failed=True,
        )

    @property
    def output(self) -> str:
        """Combined stdout and stderr, in that order."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    @property
    def command(self) -> str:
        """Command line joined for display."""
        return " ".join(self.command_line)


@dataclass(frozen=True, slots=True)
class DriverConfiguration:
    """Immutable description of one driver for the duration of a run.

    ``enabled`` is the only field that changes after construction, and
    only by replacing the whole snapshot through ``with_enabled()``.
    """

    title: str
    description: str
    user_description: str | None = None
    enabled: bool = True
    multi_user: bool = False
    dry_run: bool = False
    environment: Mapping[str, str] = field(
        default_factory=lambda: _frozen_mapping(None)
    )

    def with_enabled(self, value: bool) -> Self:  # noqa: FBT001
        """Return a copy with ``enabled`` set to *value*."""
        return replace(self, enabled=value)

    def binary_path(self, variable: str, default: str) -> str:
        """Resolve a binary path, honoring a non-empty env override."""
        return self.environment.get(variable) or default

    def user_context(self, user_name: str) -> str:
        """Label for the per-user unit of work of *user_name*."""
        return f"{self.user_description} {user_name}"


@dataclass(frozen=True, slots=True)
class InitConfiguration:
    """Run-wide settings every driver is built from."""

    dry_run: bool = False
    ci: bool = False
    verbose: bool = False
    progress_enabled: bool = True
    environment: Mapping[str, str] = field(
        default_factory=lambda: _frozen_mapping(None)
    )

    @classmethod
    def create(
        cls,
        *,
        environment: Mapping[str, str] | None = None,
        **kwargs: bool,
    ) -> Self:
        """Build a configuration around a snapshot of *environment*."""
        return cls(environment=_frozen_mapping(environment), **kwargs)


@dataclass(frozen=True, slots=True)
class User:
    """A human user with an active or lingering login session."""

    uid: int
    name: str
