"""Interactive shell with prompt_toolkit over one authenticated engine."""

import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import handle_transfer
from cli.completer import SpFilesCompleter
from cli.constants import (
    HELP_TEXT,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.parser import ParseError, parse_command
from common.logging_config import get_logger
from transfer.engine import TransferEngine
from transfer.exceptions import ConfigurationError
from transfer.types import render_report

logger = get_logger(__name__)


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome(engine: TransferEngine) -> None:
    print(WELCOME_TITLE.format(root=engine.session.root_uri, folder=engine.session.folder_path or "/"))
    print(WELCOME_HELP)


async def execute_line(engine: TransferEngine, user_input: str) -> str:
    """Parse and run one shell line, returning the text to print."""
    try:
        cmd = parse_command(user_input)
        results = await handle_transfer(cmd, engine)
    except (ParseError, ConfigurationError) as e:
        return f"Error: {e}"
    return render_report(results)


async def repl_loop(engine: TransferEngine) -> None:
    """Run the interactive shell until 'exit' or end of input."""
    session: PromptSession = PromptSession(
        completer=SpFilesCompleter(), history=InMemoryHistory(), style=STYLE
    )

    show_welcome(engine)

    while True:
        try:
            user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

            if not user_input.strip():
                continue

            if user_input.strip() == "exit":
                print("Goodbye!")
                break

            if user_input.strip() == "help":
                print(HELP_TEXT)
                continue

            if user_input.strip() == "clear":
                clear_screen()
                show_welcome(engine)
                continue

            print(await execute_line(engine, user_input))

        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
