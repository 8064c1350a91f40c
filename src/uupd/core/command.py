"""Subprocess execution for drivers, probes and notifications.

Every external tool uupd drives is launched through ``CommandRunner`` so
that tests can substitute a scripted runner and no code path spawns a
process on its own.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING

from uupd.constants import SYSTEMD_RUN_BINARY
from uupd.logger import get_logger
from uupd.models import CommandResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = get_logger(__name__)


def systemd_run_argv(
    uid: int,
    argv: Sequence[str],
    env: Mapping[str, str] | None = None,
    systemd_run: str = SYSTEMD_RUN_BINARY,
) -> list[str]:
    """Wrap *argv* so it runs inside the service manager of *uid*.

    uid 0 targets the system manager; any other uid targets that user's
    manager, which gives the command the user's session environment.
    """
    wrapped = [systemd_run, "--machine", f"{uid}@", "--pipe", "--quiet"]
    if uid != 0:
        wrapped.append("--user")
    wrapped.extend(
        f"--setenv={key}={value}" for key, value in (env or {}).items()
    )
    wrapped.extend(argv)
    return wrapped


class CommandRunner:
    """Launch external commands and capture their outcome.

    Non-zero exits and launch errors are reported through
    ``CommandResult.failed``; ``run()`` never raises for them.
    """

    def __init__(self, systemd_run: str = SYSTEMD_RUN_BINARY) -> None:
        """Initialize runner.

        Args:
            systemd_run: Path to systemd-run, used by ``run_as()``

        """
        self.systemd_run = systemd_run

    async def run(
        self,
        argv: Sequence[str],
        context: str,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run *argv* and wait for it to finish.

        Args:
            argv: Command and arguments
            context: Label recorded in the result
            env: Extra variables added to the inherited environment

        Returns:
            CommandResult describing the invocation

        """
        logger.debug("Running %s (%s)", " ".join(argv), context)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **env} if env else None,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            logger.debug("Failed to launch %s: %s", argv[0], e)
            return CommandResult.launch_failure(context, argv, e)

        result = CommandResult.from_exit(
            context,
            argv,
            process.returncode if process.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
        logger.debug(
            "Command %s exited with %s", argv[0], result.returncode
        )
        return result

    async def run_as(
        self,
        uid: int,
        argv: Sequence[str],
        context: str,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run *argv* as *uid* through systemd-run.

        The result keeps the unwrapped argv as its command line, since
        that is the command the user cares about in a failure report.

        Args:
            uid: Target user id (0 for the system manager)
            argv: Command and arguments
            context: Label recorded in the result
            env: Extra variables set inside the transient unit

        Returns:
            CommandResult describing the invocation

        """
        wrapped = systemd_run_argv(uid, argv, env, self.systemd_run)
        result = await self.run(wrapped, context)
        return CommandResult(
            context=result.context,
            command_line=tuple(argv),
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
            failed=result.failed,
        )
