"""Runtime settings for the transfer engine."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_TIMEOUT_SECONDS,
)
from transfer.exceptions import ConfigurationError


@dataclass(frozen=True)
class EngineSettings:
    """
    Tunables shared by every execution context of one engine.

    Attributes:
        timeout: Deadline in seconds for a single HTTP call
        max_attempts: Attempts per HTTP call before giving up
        backoff_multiplier: Growth factor of the delay between attempts
        retry_initial_delay: Delay in seconds before the second attempt
        chunk_size: Largest request body for one upload call
        max_concurrency: Upper bound of contexts running at the same time
        batch_timeout: Deadline in seconds for a whole batch (None = unbounded)
        download_dir: Local directory that receives downloaded files
    """

    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    retry_initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY
    chunk_size: int = CHUNK_SIZE_BYTES
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    batch_timeout: Optional[float] = None
    download_dir: Path = Path(".")

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk size must be positive, got {self.chunk_size}")
        if self.max_attempts < 1:
            raise ConfigurationError(f"max attempts must be at least 1, got {self.max_attempts}")
        if self.max_concurrency < 1:
            raise ConfigurationError(f"max concurrency must be at least 1, got {self.max_concurrency}")
