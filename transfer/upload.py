"""Monolithic and chunked (start/continue/finish) file upload."""

import os
import uuid
from typing import BinaryIO, Iterator

from common.logging_config import get_logger
from transfer.api_models import FileAddResponse
from transfer.exceptions import TransferError
from transfer.paths import ChunkPhase, chunk_uri, upload_uri
from transfer.transport import TransportChannel
from transfer.types import Session

logger = get_logger(__name__)


def iter_chunks(stream: BinaryIO, size: int, chunk_size: int) -> Iterator[tuple[int, bytes, bool]]:
    """
    Yield (offset, data, is_last) for consecutive chunks of `stream`.

    Every chunk but the last is exactly `chunk_size` bytes; the last one is the
    remaining tail, `chunk_size` bytes when `size` divides evenly. A stream that
    ends before `size` bytes marks the short read as the last chunk.
    """
    offset = 0
    while True:
        data = stream.read(chunk_size)
        is_last = offset + len(data) >= size or len(data) < chunk_size
        yield offset, data, is_last
        if is_last:
            return
        offset += len(data)


def chunk_phase(offset: int, is_last: bool) -> ChunkPhase:
    if offset == 0:
        return ChunkPhase.START
    if is_last:
        return ChunkPhase.FINISH
    return ChunkPhase.CONTINUE


async def upload_monolithic(channel: TransportChannel, session: Session, file_path: str) -> str:
    """Upload the whole file in a single files/add call."""
    with open(file_path, 'rb') as f:
        data = f.read()
    return await channel.post_bytes(upload_uri(session.root_uri, session.folder_path, file_path), data)


async def upload_chunked(channel: TransportChannel, session: Session, file_path: str, file_size: int) -> str:
    """
    Run the start/continue/finish protocol for a file larger than one chunk.

    An empty files/add call first creates (or truncates) the remote file and
    reports its server-relative URL, which addresses every chunk call.

    Returns:
        Body of the finishing call
    """
    created = await channel.post_model(
        upload_uri(session.root_uri, session.folder_path, file_path),
        FileAddResponse,
    )
    relative_url = created.server_relative_url
    upload_id = str(uuid.uuid4())
    logger.debug(f"Chunked upload of {file_path} ({file_size} bytes) as {relative_url} [upload_id={upload_id}]")

    result = ""
    with open(file_path, 'rb') as f:
        for offset, data, is_last in iter_chunks(f, file_size, session.chunk_size):
            if is_last and offset + len(data) != file_size:
                raise TransferError(
                    f"{file_path} changed during upload: expected {file_size} bytes, read {offset + len(data)}"
                )
            phase = chunk_phase(offset, is_last)
            uri = chunk_uri(session.root_uri, relative_url, phase, upload_id, offset)
            result = await channel.post_bytes(uri, data)
            logger.debug(f"Sent {phase.value} chunk of {file_path}: offset={offset} size={len(data)}")
    return result


async def upload_file(channel: TransportChannel, session: Session, file_path: str) -> str:
    """
    Upload one local file into the session folder, overwriting any remote copy.

    Files no larger than the session's chunk size go up in one call; larger
    ones use the chunked protocol end to end.
    """
    file_size = os.path.getsize(file_path)
    if file_size > session.chunk_size:
        return await upload_chunked(channel, session, file_path, file_size)
    return await upload_monolithic(channel, session, file_path)
