"""Tests for monolithic and chunked uploads."""

import io
import json
import math

import pytest

from tests.fake_service import CHUNK
from transfer.exceptions import TransferError
from transfer.paths import ChunkPhase
from transfer.upload import chunk_phase, iter_chunks, upload_file


@pytest.mark.parametrize("size,chunk_size", [
    (33, 16), (32, 16), (17, 16), (1000, 7), (48, 16), (5, 16), (16, 16),
])
def test_iter_chunks_offsets_and_sizes(size, chunk_size):
    chunks = list(iter_chunks(io.BytesIO(b"x" * size), size, chunk_size))

    assert len(chunks) == max(1, math.ceil(size / chunk_size))
    assert [offset for offset, _, _ in chunks] == [i * chunk_size for i in range(len(chunks))]
    assert all(len(data) <= chunk_size for _, data, _ in chunks)
    assert [last for _, _, last in chunks] == [False] * (len(chunks) - 1) + [True]
    tail = size % chunk_size or chunk_size
    assert len(chunks[-1][1]) == tail
    assert sum(len(data) for _, data, _ in chunks) == size


def test_iter_chunks_stream_shorter_than_declared():
    chunks = list(iter_chunks(io.BytesIO(b"x" * 20), 64, 16))

    assert [(offset, len(data), last) for offset, data, last in chunks] == [(0, 16, False), (16, 4, True)]


def test_chunk_phase():
    assert chunk_phase(0, False) is ChunkPhase.START
    assert chunk_phase(16, False) is ChunkPhase.CONTINUE
    assert chunk_phase(32, True) is ChunkPhase.FINISH


@pytest.mark.asyncio
@pytest.mark.parametrize("label", ["small", "exact", "empty"])
async def test_small_files_use_single_call(channel, session, fake_service, local_files, label):
    path = local_files[label]

    result = await upload_file(channel, session, str(path))

    assert fake_service.chunk_calls == []
    assert len(fake_service.requests) == 1
    assert fake_service.files()[path.name] == path.read_bytes()
    assert json.loads(result)["Name"] == path.name


@pytest.mark.asyncio
@pytest.mark.parametrize("label", ["double", "odd"])
async def test_large_files_use_chunked_protocol(channel, session, fake_service, local_files, label):
    path = local_files[label]
    size = path.stat().st_size

    result = await upload_file(channel, session, str(path))

    calls = fake_service.chunk_calls
    assert len(calls) == math.ceil(size / CHUNK)
    assert calls[0].phase == "startupload" and calls[0].offset is None
    assert calls[-1].phase == "finishupload"
    assert all(c.phase == "continueupload" for c in calls[1:-1])
    assert [c.offset for c in calls[1:]] == [i * CHUNK for i in range(1, len(calls))]
    assert calls[-1].size == (size % CHUNK or CHUNK)

    assert fake_service.files()[path.name] == path.read_bytes()
    assert json.loads(result)["Length"] == str(size)


@pytest.mark.asyncio
async def test_chunked_upload_creates_file_first(channel, session, fake_service, local_files):
    await upload_file(channel, session, str(local_files["odd"]))

    first = fake_service.requests[0]
    assert first.url.path.endswith("/files/add(url='odd.bin',overwrite=true)")
    assert first.content == b""
    assert first.headers["accept"] == "application/json"


@pytest.mark.asyncio
async def test_chunked_upload_uses_one_upload_id(channel, session, fake_service, local_files):
    await upload_file(channel, session, str(local_files["odd"]))

    ids = {
        request.url.path.split("uploadid=guid'")[1].split("'")[0]
        for request in fake_service.requests[1:]
    }
    assert len(ids) == 1


@pytest.mark.asyncio
async def test_chunk_call_retried_on_transient_failure(channel, session, fake_service, local_files):
    fake_service.fail("POST", "continueupload", times=2, status=None)

    await upload_file(channel, session, str(local_files["odd"]))

    assert fake_service.files()["odd.bin"] == local_files["odd"].read_bytes()


@pytest.mark.asyncio
async def test_chunk_call_exhausting_retries_aborts_upload(channel, session, fake_service, local_files):
    fake_service.fail("POST", "finishupload", times=3, status=503)

    with pytest.raises(TransferError, match="finishupload"):
        await upload_file(channel, session, str(local_files["odd"]))

    assert "odd.bin" not in fake_service.files() or fake_service.files()["odd.bin"] == b""


@pytest.mark.asyncio
async def test_missing_local_file(channel, session, tmp_path):
    with pytest.raises(FileNotFoundError):
        await upload_file(channel, session, str(tmp_path / "nope.bin"))




@pytest.mark.asyncio
async def test_file_shrinking_before_upload_is_an_error(channel, session, fake_service, local_files, monkeypatch):
    path = local_files["odd"]
    declared = path.stat().st_size
    path.write_bytes(b"short")
    monkeypatch.setattr("transfer.upload.os.path.getsize", lambda _: declared)

    with pytest.raises(TransferError, match="changed during upload"):
        await upload_file(channel, session, str(path))

    assert fake_service.chunk_calls == []


@pytest.mark.asyncio
async def test_file_shrinking_mid_upload_sends_no_finish(channel, session, fake_service, local_files, monkeypatch):
    path = local_files["odd"]
    monkeypatch.setattr("transfer.upload.os.path.getsize", lambda _: 3 * CHUNK + 1)

    with pytest.raises(TransferError, match="changed during upload"):
        await upload_file(channel, session, str(path))

    assert [c.phase for c in fake_service.chunk_calls] == ["startupload", "continueupload"]
