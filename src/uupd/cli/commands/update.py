"""Update command handler for uupd CLI."""

from argparse import Namespace

from uupd.logger import get_logger

from .base import BaseCommandHandler

logger = get_logger(__name__)


class UpdateHandler(BaseCommandHandler):
    """Handler for the update command (the default)."""

    async def execute(self, args: Namespace) -> int:
        """Run every enabled driver and return the run's exit status."""
        if self.init.dry_run:
            logger.info("Dry run: no update command will be executed")
        orchestrator = self.create_orchestrator(hw_check=args.hw_check)
        report = await orchestrator.run()
        logger.debug(
            "Run finished: %d/%d steps, %d failure(s)",
            report.completed_steps,
            report.total_steps,
            len(report.failures),
        )
        return report.exit_code
