"""Main CLI entry point for uupd.

This module provides the minimal entry point for the command-line
interface, delegating all functionality to the CLI runner.
"""

import sys

import uvloop

from uupd.cli import CLIRunner
from uupd.constants import EXIT_FAILURE, EXIT_INTERRUPTED
from uupd.logger import get_logger

logger = get_logger(__name__)


async def async_main() -> int:
    """Run the CLI asynchronously and return its exit status."""
    logger.debug("CLI started")
    runner = CLIRunner()
    try:
        return await runner.run()
    except Exception:
        logger.exception("CLI encountered an error")
        raise


def main() -> None:
    """Run the CLI application on a uvloop event loop.

    Exits with 130 when interrupted and 1 on unexpected errors.
    """
    try:
        code = uvloop.run(async_main())
    except KeyboardInterrupt:
        logger.info("uupd cancelled by user")
        sys.exit(EXIT_INTERRUPTED)
    except Exception:
        logger.exception("❌ Unexpected error")
        sys.exit(EXIT_FAILURE)
    sys.exit(code)


if __name__ == "__main__":
    main()
