"""Enumeration of human user sessions via loginctl."""

from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

from uupd.constants import LOGINCTL_BINARY
from uupd.exceptions import SessionError
from uupd.logger import get_logger
from uupd.models import User

if TYPE_CHECKING:
    from uupd.core.command import CommandRunner

logger = get_logger(__name__)


def parse_users(raw: str | bytes) -> list[User]:
    """Parse ``loginctl list-users --output=json`` output.

    Root is skipped: system-wide actions already run as root.

    Raises:
        SessionError: If the output is not the expected JSON list

    """
    try:
        entries = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        msg = f"Malformed loginctl output: {e}"
        raise SessionError(msg) from e

    if not isinstance(entries, list):
        msg = "Expected a list of users from loginctl"
        raise SessionError(msg)

    users: list[User] = []
    for entry in entries:
        try:
            user = User(uid=int(entry["uid"]), name=str(entry["user"]))
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Unexpected loginctl entry {entry!r}"
            raise SessionError(msg) from e
        if user.uid == 0:
            continue
        users.append(user)
    return users


async def list_users(
    runner: CommandRunner, loginctl: str = LOGINCTL_BINARY
) -> list[User]:
    """Return users with a login session, in loginctl order.

    Raises:
        SessionError: If loginctl fails or its output cannot be parsed

    """
    result = await runner.run(
        [loginctl, "list-users", "--output=json"], context="List users"
    )
    if result.failed:
        raise SessionError(result.stderr.strip() or "loginctl failed")
    users = parse_users(result.stdout)
    logger.debug("Found %d user session(s)", len(users))
    return users
