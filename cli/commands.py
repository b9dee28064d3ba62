"""Command handler functions for CLI operations."""

import glob
import os
from pathlib import Path
from typing import Iterable, Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.models import Invocation, TransferCommand
from transfer.engine import TransferEngine
from transfer.exceptions import ConfigurationError
from transfer.types import ItemResult, Operation

logger = get_logger(__name__)


def expand_local_masks(masks: Iterable[str], base_dir: Optional[Path] = None) -> list[str]:
    """
    Expand local file masks into regular files, mask by mask.

    Matches of one mask are sorted; directories are skipped. A path given
    without wildcards is kept when it names a file.

    Args:
        masks: Shell-style masks, relative to `base_dir` unless absolute
        base_dir: Directory relative masks are resolved against (default: cwd)

    Returns:
        Matching file paths, in mask order
    """
    files = []
    for mask in masks:
        pattern = mask if base_dir is None or os.path.isabs(mask) else os.path.join(base_dir, mask)
        matches = sorted(path for path in glob.glob(pattern) if os.path.isfile(path))
        logger.debug(f"Local mask {mask!r} matched {len(matches)} file(s)")
        files.extend(matches)
    return files


def resolve_items(cmd: TransferCommand, base_dir: Optional[Path] = None) -> list[str]:
    """
    Turn a command's raw items into the item list handed to the engine.

    Raises:
        ConfigurationError: If the command resolves to no items
    """
    if cmd.operation is Operation.UPLOAD:
        if not cmd.items:
            raise ConfigurationError("file is not specified")
        files = expand_local_masks(cmd.items, base_dir)
        if not files:
            raise ConfigurationError("empty file set")
        return files

    if cmd.operation is Operation.LIST:
        return list(cmd.items) or [""]

    if not cmd.items:
        raise ConfigurationError("file is not specified")
    return list(cmd.items)


async def connect(
    invocation: Invocation,
    config: Config,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TransferEngine:
    """
    Authenticate with command-line values, falling back to config and environment.

    Args:
        invocation: Parsed command line
        config: Loaded CLI configuration
        transport: Optional httpx transport for dependency injection (testing)

    Returns:
        Connected TransferEngine
    """
    root_uri = invocation.server_root_uri or config.get_server_root_uri()
    folder = invocation.server_folder if invocation.server_folder is not None else config.get_server_folder()
    username = invocation.username or config.get_username()
    password = invocation.password or os.environ.get("SPFILES_PASSWORD", "")

    logger.info(f"Connecting to {root_uri or '<unset>'} as {username or '<unset>'}")
    return await TransferEngine.connect(
        root_uri,
        folder,
        username,
        password,
        settings=config.get_engine_settings(),
        transport=transport,
    )


async def handle_transfer(
    cmd: TransferCommand,
    engine: TransferEngine,
    base_dir: Optional[Path] = None,
) -> list[ItemResult]:
    """
    Handle one transfer command against a connected engine.

    Args:
        cmd: TransferCommand with operation and raw items
        engine: Connected TransferEngine
        base_dir: Directory local masks are resolved against (default: cwd)

    Returns:
        One ItemResult per processed item, in submission order
    """
    items = resolve_items(cmd, base_dir)
    logger.info(f"Executing {cmd.operation.value} command: {len(items)} item(s)")
    results = await engine.perform_items(cmd.operation, items)
    failed = sum(1 for r in results if not r.ok)
    logger.debug(f"{cmd.operation.value} command completed: {len(results) - failed} ok, {failed} failed")
    return results
