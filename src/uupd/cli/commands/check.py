"""Standalone system probes: update-check and image-outdated."""

from argparse import Namespace

from uupd.constants import EXIT_SUCCESS

from .base import BaseCommandHandler


def _print_bool(value: bool) -> None:  # noqa: FBT001
    print("true" if value else "false")


class UpdateCheckHandler(BaseCommandHandler):
    """Print whether a system image update is available."""

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """Probe the system driver; DriverError propagates to the runner."""
        available = await self.create_orchestrator().check_system_update()
        _print_bool(available)
        return EXIT_SUCCESS


class ImageOutdatedHandler(BaseCommandHandler):
    """Print whether the booted image is more than a month old."""

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """Probe the booted image age."""
        outdated = await self.create_orchestrator().check_image_outdated()
        _print_bool(outdated)
        return EXIT_SUCCESS
