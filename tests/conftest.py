"""Shared pytest fixtures for all tests."""

import pytest

from cli.config import Config
from tests.fake_service import CHUNK, DIGEST, FOLDER, SITE, TOKEN, CountingChannelFactory, FakeDocumentService
from transfer.config import EngineSettings
from transfer.engine import TransferEngine
from transfer.transport import TransportChannel
from transfer.types import AuthCookie, Session


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .spfiles directory
    """
    config_dir = tmp_path / '.spfiles'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def fake_service():
    """Fresh in-memory document service."""
    return FakeDocumentService()


@pytest.fixture
def settings(tmp_path):
    """Engine settings with a tiny chunk size and no retry delay."""
    return EngineSettings(
        timeout=5,
        retry_initial_delay=0,
        chunk_size=CHUNK,
        download_dir=tmp_path / 'downloads',
    )


@pytest.fixture
def session():
    """Session as the bootstrap would build it against the fake service."""
    return Session(
        root_uri=SITE,
        folder_path=FOLDER,
        cookie=AuthCookie(name='FedAuth', value=TOKEN),
        digest=DIGEST,
        chunk_size=CHUNK,
    )


@pytest.fixture
def channel_factory(fake_service, settings):
    return CountingChannelFactory(fake_service, settings)


@pytest.fixture
def engine(session, settings, channel_factory):
    """TransferEngine wired to the fake service."""
    return TransferEngine(session, settings, channel_factory=channel_factory)


@pytest.fixture
def channel(session, settings, fake_service):
    return TransportChannel.for_session(session, settings, fake_service.transport())


@pytest.fixture
def local_files(tmp_path):
    """
    Create local files around the chunk size for upload tests.

    Returns:
        Dict mapping a label to the Path of the file
    """
    upload_dir = tmp_path / 'uploads'
    upload_dir.mkdir()
    sizes = {'small': 5, 'exact': CHUNK, 'double': 2 * CHUNK, 'odd': 2 * CHUNK + 3, 'empty': 0}
    files = {}
    for label, size in sizes.items():
        path = upload_dir / f'{label}.bin'
        path.write_bytes(bytes(i % 251 for i in range(size)))
        files[label] = path
    return files
