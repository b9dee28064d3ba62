"""Command request data types for CLI."""

from dataclasses import dataclass

from transfer.types import Operation


@dataclass(frozen=True)
class TransferCommand:
    """One operation over a list of items."""

    operation: Operation
    items: tuple[str, ...]


@dataclass(frozen=True)
class Invocation:
    """Everything a one-shot run needs, as given on the command line."""

    command: TransferCommand
    server_root_uri: str | None = None
    server_folder: str | None = None
    username: str | None = None
    password: str | None = None
    config_path: str | None = None
    shell: bool = False
    debug: bool = False
