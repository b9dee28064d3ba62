"""Operation dispatcher and fan-out driver."""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

import httpx

from common.logging_config import get_logger
from transfer.api_models import FileListResponse, FolderExpandResponse
from transfer.config import EngineSettings
from transfer.exceptions import ApplicationError, ConfigurationError, ItemError
from transfer.glob_filter import filter_names
from transfer.paths import files_listing_uri, folders_listing_uri, item_uri, subfolder_path
from transfer.session import open_session
from transfer.transport import TransportChannel
from transfer.types import ItemResult, Operation, Session, render_report
from transfer.upload import upload_file

logger = get_logger(__name__)

ChannelFactory = Callable[[Session], TransportChannel]


class ExecutionContext:
    """
    One unit of work: the shared Session plus a channel owned by this context only.
    """

    def __init__(self, session: Session, channel: TransportChannel, settings: EngineSettings):
        self.session = session
        self.channel = channel
        self.settings = settings

    def _handler_for(self, operation: Operation) -> Callable[[str], Awaitable[str]]:
        handlers = {
            Operation.UPLOAD: self.upload,
            Operation.DOWNLOAD: self.download,
            Operation.REMOVE: self.remove,
            Operation.LIST: self.list_folder,
        }
        try:
            return handlers[operation]
        except (KeyError, TypeError):
            raise ApplicationError(f"Unexpected operation: {operation!r}") from None

    async def execute(self, operation: Operation, item: str) -> ItemResult:
        """
        Run `operation` on one item and capture any failure as a result.

        Raises:
            ApplicationError: If `operation` is not a known Operation
        """
        handler = self._handler_for(operation)
        try:
            message = await handler(item)
        except Exception as e:
            error = ItemError(item, e)
            logger.warning(f"{operation.value} failed for {item}: {error.kind}: {error}")
            return ItemResult.failure(item, error)
        logger.debug(f"{operation.value} succeeded for {item}")
        return ItemResult.success(item, message)

    async def upload(self, item: str) -> str:
        return await upload_file(self.channel, self.session, item)

    async def download(self, item: str) -> str:
        destination = Path(self.settings.download_dir) / item
        await self.channel.download_to(item_uri(self.session.root_uri, self.session.folder_path, item), destination)
        return f"{item} - Downloaded"

    async def remove(self, item: str) -> str:
        await self.channel.delete(item_uri(self.session.root_uri, self.session.folder_path, item))
        return f"{item} - Removed"

    async def list_folder(self, item: str) -> str:
        return '\n'.join(await self.list_names(item, include_folders=True))

    async def list_names(self, subfolder: str = "", include_folders: bool = False) -> list[str]:
        """
        Names in a remote folder: bracketed sub-folders first, then files.

        Args:
            subfolder: Folder relative to the session folder ("" = the folder itself)
            include_folders: Also list sub-folders

        Returns:
            Folder entries as "[name]" sorted by name, then file names in the
            order the service returns them (ordered by name)
        """
        folder = subfolder_path(self.session.folder_path, subfolder)
        listing = await self.channel.get_model(files_listing_uri(self.session.root_uri, folder), FileListResponse)
        files = [entry.name for entry in listing.value]
        if not include_folders:
            return files

        expanded = await self.channel.get_model(
            folders_listing_uri(self.session.root_uri, folder), FolderExpandResponse
        )
        folders = sorted(f"[{entry.name}]" for entry in expanded.folders)
        return folders + files

    async def aclose(self) -> None:
        await self.channel.aclose()

    async def __aenter__(self) -> "ExecutionContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class TransferEngine:
    """
    Runs one operation over a batch of items against a single Session.

    The engine owns a parent context used for single-item batches and for
    remote listings. Batches of several items fork one context per item.
    """

    def __init__(
        self,
        session: Session,
        settings: Optional[EngineSettings] = None,
        channel_factory: Optional[ChannelFactory] = None,
    ):
        """
        Initialize the engine.

        Args:
            session: Authenticated session shared by every context
            settings: Engine settings (defaults to EngineSettings())
            channel_factory: Builds a fresh channel for a context
        """
        self.session = session
        self.settings = settings or EngineSettings()
        self._channel_factory = channel_factory or (
            lambda s: TransportChannel.for_session(s, self.settings)
        )
        self._context = ExecutionContext(session, self._channel_factory(session), self.settings)

    @classmethod
    async def connect(
        cls,
        root_uri: str,
        folder_path: str,
        username: str,
        password: str,
        settings: Optional[EngineSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "TransferEngine":
        """Bootstrap a Session and build an engine on top of it."""
        settings = settings or EngineSettings()
        session = await open_session(root_uri, folder_path, username, password, settings, transport)
        return cls(
            session,
            settings,
            channel_factory=lambda s: TransportChannel.for_session(s, settings, transport),
        )

    def fork(self) -> ExecutionContext:
        """New context sharing this engine's Session with a channel of its own."""
        return ExecutionContext(self.session, self._channel_factory(self.session), self.settings)

    async def resolve_remote_items(self, pattern: str) -> list[str]:
        """Files of the session folder whose names match `pattern`."""
        names = await self._context.list_names()
        matches = filter_names(names, pattern)
        logger.debug(f"Pattern {pattern!r} matched {len(matches)} of {len(names)} remote file(s)")
        return matches

    def _timed_out(self, item: str) -> ItemResult:
        error = ItemError(item, TimeoutError(f"batch deadline of {self.settings.batch_timeout}s exceeded"))
        return ItemResult.failure(item, error)

    async def _run_single(self, operation: Operation, item: str) -> ItemResult:
        try:
            return await asyncio.wait_for(
                self._context.execute(operation, item),
                self.settings.batch_timeout,
            )
        except asyncio.TimeoutError:
            return self._timed_out(item)

    async def _fan_out(self, operation: Operation, items: list[str]) -> list[ItemResult]:
        """
        Run every item in its own forked context, at most max_concurrency at once.

        Results come back in submission order. Items still running when the
        batch deadline passes are cancelled and reported as failures.
        """
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def run(item: str) -> ItemResult:
            async with semaphore:
                async with self.fork() as context:
                    return await context.execute(operation, item)

        tasks = [asyncio.ensure_future(run(item)) for item in items]
        _, pending = await asyncio.wait(tasks, timeout=self.settings.batch_timeout)
        if pending:
            logger.warning(f"Batch deadline reached, cancelling {len(pending)} unfinished item(s)")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        return [
            self._timed_out(item) if task in pending else task.result()
            for item, task in zip(items, tasks)
        ]

    async def perform_items(self, operation: Operation, items: Iterable[str]) -> list[ItemResult]:
        """
        Apply `operation` to every item and collect one result per item.

        A single download/remove item is treated as a mask and replaced by the
        matching remote files before dispatch.

        Raises:
            ApplicationError: If `operation` is not a known Operation
            ConfigurationError: If `items` is empty
        """
        if not isinstance(operation, Operation):
            raise ApplicationError(f"Unexpected operation: {operation!r}")

        items = list(items)
        if not items:
            raise ConfigurationError("empty item set")

        if operation in (Operation.DOWNLOAD, Operation.REMOVE) and len(items) == 1:
            pattern = items[0]
            try:
                items = await self.resolve_remote_items(pattern)
            except Exception as e:
                return [ItemResult.failure(pattern, ItemError(pattern, e))]
            if not items:
                return [ItemResult(item=pattern, ok=False, message="no remote file matches", error_kind="NoMatch")]

        logger.info(f"Performing {operation.value} on {len(items)} item(s)")
        if len(items) == 1:
            return [await self._run_single(operation, items[0])]
        return await self._fan_out(operation, items)

    async def perform(self, operation: Operation, items: Iterable[str]) -> str:
        """Apply `operation` to `items` and return the newline-joined report."""
        return render_report(await self.perform_items(operation, items))

    async def aclose(self) -> None:
        await self._context.aclose()

    async def __aenter__(self) -> "TransferEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
