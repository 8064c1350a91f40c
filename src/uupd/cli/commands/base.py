"""Base command handler for uupd CLI commands.

This module provides the abstract base class that all command handlers
inherit from, ensuring a consistent interface across commands.
"""

from abc import ABC, abstractmethod
from argparse import Namespace

from uupd.config import Settings
from uupd.core.command import CommandRunner
from uupd.core.orchestrator import UpdateOrchestrator
from uupd.logger import get_logger
from uupd.models import InitConfiguration

logger = get_logger(__name__)


class BaseCommandHandler(ABC):
    """Abstract base class for all command handlers.

    CLIRunner acts as the composition root: it builds the run settings
    and the command runner once and injects them into every handler.
    """

    def __init__(
        self,
        init: InitConfiguration,
        settings: Settings,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize the command handler with shared dependencies.

        Args:
            init: Run-wide settings derived from flags and environment
            settings: Settings file contents
            runner: Command runner shared by every subprocess

        """
        self.init = init
        self.settings = settings
        self.runner = runner or CommandRunner()

    def create_orchestrator(
        self, *, hw_check: bool = False
    ) -> UpdateOrchestrator:
        """Build an orchestrator from the injected dependencies."""
        return UpdateOrchestrator(
            self.init, self.settings, self.runner, hw_check=hw_check
        )

    @abstractmethod
    async def execute(self, args: Namespace) -> int:
        """Execute the command with the given arguments.

        Args:
            args: Parsed command-line arguments

        Returns:
            Process exit status

        """
