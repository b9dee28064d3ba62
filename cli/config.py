"""Configuration management for spfiles CLI."""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from cli.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME
from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger
from transfer.config import EngineSettings

logger = get_logger(__name__)


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class Config:
    """Manages CLI configuration stored in JSON file.

    The password is never part of the file; it comes from the command line or
    the SPFILES_PASSWORD environment variable. Server root, folder and user name
    fall back to SPFILES_SERVER_ROOT, SPFILES_SERVER_FOLDER and SPFILES_USERNAME
    when the file leaves them empty.
    """

    DEFAULT_CONFIG = {
        "server_root_uri": "",
        "server_folder": "",
        "username": "",
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "max_attempts": DEFAULT_MAX_ATTEMPTS,
        "retry_backoff_multiplier": DEFAULT_BACKOFF_MULTIPLIER,
        "retry_initial_delay": DEFAULT_RETRY_INITIAL_DELAY,
        "chunk_size": CHUNK_SIZE_BYTES,
        "max_concurrency": DEFAULT_MAX_CONCURRENCY,
        "batch_timeout": None,
        "download_dir": ".",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.spfiles/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / CONFIG_DIR_NAME / CONFIG_FILE_NAME
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                config.pop('password', None)
                return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Ignoring unreadable config {self.config_path}: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    pass
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError:
                pass
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        data = {k: v for k, v in self.data.items() if k != 'password'}
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.warning(f"Cannot save config {self.config_path}: {e}")

    def get_server_root_uri(self) -> str:
        return self.data.get('server_root_uri') or os.environ.get('SPFILES_SERVER_ROOT', "")

    def get_server_folder(self) -> str:
        return self.data.get('server_folder') or os.environ.get('SPFILES_SERVER_FOLDER', "")

    def get_username(self) -> str:
        return self.data.get('username') or os.environ.get('SPFILES_USERNAME', "")

    def get_timeout(self) -> float:
        """
        Get request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return self.data.get('timeout', DEFAULT_TIMEOUT_SECONDS)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_attempts', 'retry_backoff_multiplier' and
            'retry_initial_delay'
        """
        return {
            'max_attempts': self.data.get('max_attempts', DEFAULT_MAX_ATTEMPTS),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', DEFAULT_BACKOFF_MULTIPLIER),
            'retry_initial_delay': self.data.get('retry_initial_delay', DEFAULT_RETRY_INITIAL_DELAY),
        }

    def get_engine_settings(self, download_dir: Optional[Path] = None) -> EngineSettings:
        """
        Build transfer engine settings from this configuration.

        Args:
            download_dir: Overrides the configured download directory

        Raises:
            ConfigurationError: If a value is out of range
        """
        retry = self.get_retry_config()
        return EngineSettings(
            timeout=float(self.get_timeout()),
            max_attempts=int(retry['max_attempts']),
            backoff_multiplier=float(retry['retry_backoff_multiplier']),
            retry_initial_delay=float(retry['retry_initial_delay']),
            chunk_size=int(self.data.get('chunk_size', CHUNK_SIZE_BYTES)),
            max_concurrency=int(self.data.get('max_concurrency', DEFAULT_MAX_CONCURRENCY)),
            batch_timeout=self.data.get('batch_timeout'),
            download_dir=download_dir or Path(self.data.get('download_dir') or '.'),
        )
