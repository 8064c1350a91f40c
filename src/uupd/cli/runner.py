"""CLI runner for uupd.

Orchestrates the execution of CLI commands by routing parsed arguments
to the appropriate command handlers and mapping errors to exit codes.
"""

import os
from argparse import Namespace
from collections.abc import Mapping, Sequence
from dataclasses import replace

from uupd import __version__
from uupd.config import (
    MODULE_NAMES,
    Settings,
    load_settings,
    resolve_config_path,
)
from uupd.constants import (
    EXIT_FAILURE,
    EXIT_PREFLIGHT,
    EXIT_SUCCESS,
)
from uupd.core.command import CommandRunner
from uupd.exceptions import (
    ConfigurationError,
    DriverError,
    HardwareCheckError,
    LockError,
    SessionError,
)
from uupd.logger import configure_logging, flush_all_handlers, get_logger
from uupd.logger.config import load_log_settings
from uupd.models import InitConfiguration

from .commands import (
    BaseCommandHandler,
    HwCheckHandler,
    ImageOutdatedHandler,
    UpdateCheckHandler,
    UpdateHandler,
)
from .parser import CLIParser

logger = get_logger(__name__)

COMMAND_HANDLERS: dict[str, type[BaseCommandHandler]] = {
    "update": UpdateHandler,
    "update-check": UpdateCheckHandler,
    "image-outdated": ImageOutdatedHandler,
    "hw-check": HwCheckHandler,
}


def is_ci(args: Namespace, environment: Mapping[str, str]) -> bool:
    """Whether this run happens in continuous integration."""
    return args.ci or environment.get("CI", "").lower() == "true"


def apply_module_flags(settings: Settings, args: Namespace) -> Settings:
    """Return *settings* with ``--disable-module-*`` flags applied."""
    modules = dict(settings.modules)
    for name in MODULE_NAMES:
        if getattr(args, f"disable_module_{name}", False):
            modules[name] = False
    return replace(settings, modules=modules)


class CLIRunner:
    """CLI command runner and orchestrator."""

    def __init__(
        self,
        environment: Mapping[str, str] | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize CLI runner.

        Args:
            environment: Environment snapshot (os.environ if None)
            runner: Command runner shared by every handler

        """
        self.environment = dict(
            os.environ if environment is None else environment
        )
        self.runner = runner or CommandRunner()

    def _load_settings(self, args: Namespace) -> Settings:
        path = resolve_config_path(args.config, self.environment)
        return apply_module_flags(load_settings(path), args)

    def _configure_logging(self, args: Namespace, settings: Settings) -> None:
        if args.verbose:
            console_level = "DEBUG"
        else:
            console_level = args.log_level or settings.console_log_level
        log_file = args.log_file or settings.log_file or load_log_settings()[2]
        configure_logging(
            console_level,
            settings.log_level,
            log_file,
            json_output=args.json,
        )

    def _create_init(self, args: Namespace) -> InitConfiguration:
        return InitConfiguration.create(
            environment=self.environment,
            dry_run=args.dry_run,
            ci=is_ci(args, self.environment),
            verbose=args.verbose,
            progress_enabled=not args.no_progress,
        )

    async def run(self, argv: Sequence[str] | None = None) -> int:
        """Run the CLI application.

        Parses arguments, loads settings, configures logging, and routes
        to the appropriate handler.

        Args:
            argv: Arguments without the program name (sys.argv if None)

        Returns:
            Process exit status

        """
        args = CLIParser().parse_args(argv)

        if args.version:
            print(__version__)
            return EXIT_SUCCESS

        try:
            settings = self._load_settings(args)
            self._configure_logging(args, settings)
        except ConfigurationError as e:
            logger.error("❌ %s", e)
            return EXIT_PREFLIGHT

        init = self._create_init(args)
        handler = COMMAND_HANDLERS[args.command](init, settings, self.runner)
        try:
            return await handler.execute(args)
        except (LockError, SessionError, HardwareCheckError) as e:
            logger.error("❌ %s", e)
            return EXIT_PREFLIGHT
        except DriverError as e:
            logger.error("❌ %s", e)
            return EXIT_FAILURE
        finally:
            flush_all_handlers()
