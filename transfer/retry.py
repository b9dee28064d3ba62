"""Bounded retry policy applied to every network call."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from common.constants import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_INITIAL_DELAY,
)
from common.logging_config import get_logger
from transfer.exceptions import TransferError

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry transport failures and 5xx responses up to max_attempts in total.

    4xx responses are returned to the caller on the first attempt; they will
    not get better by asking again.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following `attempt` (0-based)."""
        return self.initial_delay * (self.backoff_multiplier ** attempt)

    async def run(
        self,
        call: Callable[[], Awaitable[httpx.Response]],
        description: str,
    ) -> httpx.Response:
        """
        Invoke `call` until it yields a non-5xx response or attempts run out.

        Args:
            call: Zero-argument coroutine factory performing one HTTP exchange
            description: Short label for log and error messages (e.g. "POST /x")

        Returns:
            The first response with a status below 500

        Raises:
            TransferError: If every attempt failed
        """
        last_exception: Exception | None = None
        last_status: int | None = None

        for attempt in range(self.max_attempts):
            try:
                response = await call()
            except httpx.TransportError as e:
                last_exception = e
                last_status = None
                logger.debug(
                    f"Network error (attempt {attempt + 1}/{self.max_attempts}): "
                    f"{description} error={type(e).__name__}"
                )
            else:
                if response.status_code < 500:
                    return response
                last_exception = None
                last_status = response.status_code
                logger.debug(
                    f"Server error (attempt {attempt + 1}/{self.max_attempts}): "
                    f"{description} status={response.status_code}"
                )

            if attempt < self.max_attempts - 1:
                await asyncio.sleep(self.delay_for(attempt))

        if last_status is not None:
            logger.error(f"Giving up on {description}: status={last_status} after {self.max_attempts} attempt(s)")
            raise TransferError(
                f"{description} failed with status {last_status} after {self.max_attempts} attempt(s)",
                status_code=last_status,
            )

        logger.error(f"Giving up on {description}: {last_exception!r} after {self.max_attempts} attempt(s)")
        raise TransferError(
            f"{description} failed after {self.max_attempts} attempt(s): {last_exception or 'no response'}"
        ) from last_exception
