"""CLI argument parser for uupd.

Run options are accepted both before and after the subcommand, so
``uupd --dry-run`` and ``uupd update --dry-run`` are equivalent.
"""

import argparse
from argparse import Namespace
from collections.abc import Sequence
from pathlib import Path

from uupd.config import MODULE_NAMES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_COMMAND = "update"


class CLIParser:
    """Command-line argument parser for uupd."""

    def parse_args(self, argv: Sequence[str] | None = None) -> Namespace:
        """Parse command-line arguments.

        Args:
            argv: Arguments without the program name (sys.argv if None)

        Returns:
            Namespace: Parsed arguments; ``command`` defaults to update

        """
        parser = self._create_main_parser()
        self._add_global_options(parser)
        self._add_run_options(parser)
        self._add_subcommands(parser)
        args = parser.parse_args(argv)
        if args.command is None:
            args.command = DEFAULT_COMMAND
        return args

    def _create_main_parser(self) -> argparse.ArgumentParser:
        return argparse.ArgumentParser(
            prog="uupd",
            description="Universal update orchestrator",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s                       # Update everything
  %(prog)s --dry-run --verbose   # Show what would run
  %(prog)s --disable-module-distrobox
  %(prog)s update-check          # Print whether a system update exists
  %(prog)s image-outdated        # Print whether the image is stale
  %(prog)s hw-check              # Run hardware checks only
            """,
        )

    def _add_global_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--version",
            action="store_true",
            help="Show uupd version and exit",
        )

    def _add_run_options(
        self, parser: argparse.ArgumentParser, *, suppress: bool = False
    ) -> None:
        """Add the options shared by every command.

        Args:
            parser: Parser to add options to
            suppress: Leave unset options out of the namespace, so a
                subcommand does not overwrite values given before it

        """

        def default(value: object) -> object:
            return argparse.SUPPRESS if suppress else value

        parser.add_argument(
            "--dry-run",
            action="store_true",
            default=default(False),
            help="Show progress without running any update command",
        )
        parser.add_argument(
            "--hw-check",
            action="store_true",
            default=default(False),
            help="Run hardware checks before updating",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            default=default(False),
            help="Log every command result, not only failures",
        )
        parser.add_argument(
            "--no-progress",
            action="store_true",
            default=default(False),
            help="Log step changes instead of drawing a progress bar",
        )
        parser.add_argument(
            "--ci",
            action="store_true",
            default=default(False),
            help="Assume a CI environment (skips the system driver)",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            default=default(False),
            help="Emit console logs as JSON lines",
        )
        parser.add_argument(
            "--log-level",
            type=str.upper,
            choices=LOG_LEVELS,
            default=default(None),
            help="Console log level (overrides the settings file)",
        )
        parser.add_argument(
            "--log-file",
            type=Path,
            default=default(None),
            help="Also write logs to this file",
        )
        parser.add_argument(
            "--config",
            type=Path,
            default=default(None),
            help="Settings file (default: /etc/uupd/uupd.conf)",
        )
        for name in MODULE_NAMES:
            parser.add_argument(
                f"--disable-module-{name}",
                action="store_true",
                default=default(False),
                help=f"Do not run the {name} module",
            )

    def _add_subcommands(self, parser: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands"
        )
        commands = {
            "update": "Update system, Brew, Flatpak and Distrobox (default)",
            "update-check": "Print true if a system update is available",
            "image-outdated": "Print true if the image is over a month old",
            "hw-check": "Run hardware checks and exit",
        }
        for name, help_text in commands.items():
            sub = subparsers.add_parser(name, help=help_text)
            self._add_run_options(sub, suppress=True)
