"""CLI entry point."""

import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from common.logging_config import setup_logging
from cli.commands import connect, resolve_items
from cli.config import Config, default_config_path
from cli.constants import USAGE
from cli.models import Invocation
from cli.parser import ParseError, parse_arguments
from cli.repl import repl_loop
from transfer.exceptions import AuthenticationError, ConfigurationError, DigestError
from transfer.types import render_report

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_AUTH = 2
EXIT_ITEM_FAILED = 3


async def run_invocation(invocation: Invocation, config: Config, transport=None) -> int:
    """
    Connect, run the requested operation (or the shell) and print the report.

    Items are resolved before connecting, so an empty local file set fails
    without any network traffic.
    """
    items = None if invocation.shell else resolve_items(invocation.command)

    async with await connect(invocation, config, transport=transport) as engine:
        if invocation.shell:
            await repl_loop(engine)
            return EXIT_OK
        results = await engine.perform_items(invocation.command.operation, items)

    print(render_report(results))
    return EXIT_OK if all(r.ok for r in results) else EXIT_ITEM_FAILED


def run(argv: Sequence[str], transport=None) -> int:
    """Run one invocation and return the process exit code."""
    try:
        invocation = parse_arguments(argv)
    except ParseError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        return EXIT_USAGE

    log_level = 'DEBUG' if invocation.debug else os.getenv('LOG_LEVEL', 'INFO')
    logger = setup_logging('cli', log_level=log_level)
    setup_logging('transfer', log_level=log_level)

    if invocation.debug:
        logger.info("Debug logging enabled")

    config_path: Optional[Path] = Path(invocation.config_path) if invocation.config_path else None
    config = Config(config_path or default_config_path())

    try:
        return asyncio.run(run_invocation(invocation, config, transport=transport))
    except ConfigurationError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        return EXIT_USAGE
    except (AuthenticationError, DigestError) as e:
        logger.error(f"Session setup failed: {e}")
        print(f"Error: {e}")
        return EXIT_AUTH


def main() -> None:
    """Entry point for CLI."""
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
