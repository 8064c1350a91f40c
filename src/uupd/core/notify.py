"""Desktop notifications for logged-in users."""

from __future__ import annotations

from typing import TYPE_CHECKING

from uupd.constants import APP_NAME, NOTIFY_SEND_BINARY
from uupd.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from uupd.core.command import CommandRunner
    from uupd.models import User

logger = get_logger(__name__)


class Notifier:
    """Send a notification to every user session.

    Delivery problems are logged and otherwise ignored; a missing
    notification never changes the outcome of a run.
    """

    def __init__(
        self,
        runner: CommandRunner,
        users: Sequence[User] = (),
        *,
        enabled: bool = True,
        notify_send: str = NOTIFY_SEND_BINARY,
    ) -> None:
        """Initialize notifier.

        Args:
            runner: Command runner used to reach each user session
            users: Recipients
            enabled: False disables delivery (dry runs)
            notify_send: Path to notify-send

        """
        self.runner = runner
        self.users = tuple(users)
        self.enabled = enabled
        self.notify_send = notify_send

    async def notify(
        self, summary: str, body: str, urgency: str = "normal"
    ) -> None:
        """Deliver *summary* and *body* to every user."""
        if not self.enabled:
            logger.debug("Notification suppressed: %s", summary)
            return
        argv = [
            self.notify_send,
            f"--app-name={APP_NAME}",
            f"--urgency={urgency}",
            summary,
            body,
        ]
        for user in self.users:
            result = await self.runner.run_as(
                user.uid,
                argv,
                context=f"Notify {user.name}",
                env={
                    "DBUS_SESSION_BUS_ADDRESS": (
                        f"unix:path=/run/user/{user.uid}/bus"
                    )
                },
            )
            if result.failed:
                logger.warning(
                    "Failed to notify %s: %s",
                    user.name,
                    result.output.strip(),
                )
