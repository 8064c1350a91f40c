"""Hardware check command handler for uupd CLI."""

from argparse import Namespace

from uupd.checks import run_hw_checks
from uupd.constants import EXIT_SUCCESS
from uupd.logger import get_logger

from .base import BaseCommandHandler

logger = get_logger(__name__)


class HwCheckHandler(BaseCommandHandler):
    """Run the hardware checks without updating anything.

    A failed check raises HardwareCheckError, which the runner turns
    into the pre-flight exit status.
    """

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """Run every check and log its outcome."""
        for result in run_hw_checks(self.settings.hardware):
            logger.info("✅ %s: %s", result.name, result.detail)
        return EXIT_SUCCESS
