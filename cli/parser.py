"""Argument and shell-line parsing for CLI input."""

import shlex
from typing import Sequence

from cli.models import Invocation, TransferCommand
from transfer.types import Operation


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


OPTION_FLAGS = {
    "-s": "server_root_uri",
    "--server": "server_root_uri",
    "-f": "server_folder",
    "--folder": "server_folder",
    "-u": "username",
    "--user": "username",
    "-p": "password",
    "--password": "password",
    "-o": "operation",
    "--operation": "operation",
    "-c": "config_path",
    "--config": "config_path",
}

SWITCHES = {
    "--shell": "shell",
    "--debug": "debug",
}


def parse_operation(name: str) -> Operation:
    """Map an operation name (case-insensitive) to an Operation."""
    try:
        return Operation(name.lower())
    except ValueError:
        valid = ", ".join(op.value for op in Operation)
        raise ParseError(f"Unknown operation: {name} (expected one of: {valid})") from None


def parse_arguments(argv: Sequence[str]) -> Invocation:
    """Parse process arguments into an Invocation.

    Everything after a bare '--' is an item, even if it starts with '-'.

    Args:
        argv: Arguments without the program name

    Returns:
        Invocation with the operation (upload when not given) and its items

    Raises:
        ParseError: If an option is unknown or lacks its value
    """
    values: dict[str, str] = {}
    switches: dict[str, bool] = {}
    items: list[str] = []

    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "--":
            items.extend(argv[i + 1:])
            break
        if token in SWITCHES:
            switches[SWITCHES[token]] = True
        elif token in OPTION_FLAGS:
            if i + 1 >= len(argv):
                raise ParseError(f"{token} requires a value")
            values[OPTION_FLAGS[token]] = argv[i + 1]
            i += 1
        elif token.startswith("-") and token != "-":
            raise ParseError(f"Unknown option: {token}")
        else:
            items.append(token)
        i += 1

    operation = parse_operation(values.pop("operation", Operation.UPLOAD.value))
    return Invocation(
        command=TransferCommand(operation=operation, items=tuple(items)),
        **values,
        **switches,
    )


def parse_command(input_line: str) -> TransferCommand:
    """Parse a shell line into a TransferCommand.

    Args:
        input_line: Raw user input from the shell

    Returns:
        TransferCommand for the named operation

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].lower()
    if command_name not in {op.value for op in Operation}:
        raise ParseError(f"Unknown command: {tokens[0]}")

    operation = Operation(command_name)
    args = tuple(tokens[1:])
    if operation is not Operation.LIST and not args:
        raise ParseError(f"{command_name} requires at least one file mask")

    return TransferCommand(operation=operation, items=args)
