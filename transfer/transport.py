"""HTTP channel used by one execution context."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from common.constants import DEFAULT_TIMEOUT_SECONDS, JSON_MEDIA_TYPE
from common.logging_config import get_logger
from transfer.config import EngineSettings
from transfer.exceptions import TransferError
from transfer.retry import RetryPolicy
from transfer.types import Session

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TransportChannel:
    """
    Async HTTP client bound to one execution context.

    A channel is never handed to a second concurrent task; forking an engine
    context always builds a new one. Session headers are set once when the
    underlying client is created.
    """

    def __init__(
        self,
        headers: Optional[dict] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the channel.

        Args:
            headers: Headers sent with every request (cookie, digest)
            timeout: Per-call deadline in seconds
            retry_policy: Policy wrapping every call (defaults to RetryPolicy())
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self.client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )
        self.retry_policy = retry_policy or RetryPolicy()

    @classmethod
    def for_session(
        cls,
        session: Session,
        settings: EngineSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "TransportChannel":
        """Build a channel carrying the session's cookie and digest."""
        return cls(
            headers=session.auth_headers(),
            timeout=settings.timeout,
            retry_policy=RetryPolicy(
                max_attempts=settings.max_attempts,
                backoff_multiplier=settings.backoff_multiplier,
                initial_delay=settings.retry_initial_delay,
            ),
            transport=transport,
        )

    @staticmethod
    def _format_error(response: httpx.Response) -> str:
        """
        Extract the service's error text from a failed response.

        The service nests it as {"error": {"message": {"value": ...}}} (or under
        "odata.error"); anything else falls back to the reason phrase.
        """
        try:
            data = response.json()
            error = data.get("error") or data.get("odata.error") or {}
            message = error.get("message")
            if isinstance(message, dict):
                message = message.get("value")
            if message:
                return str(message)
        except (ValueError, AttributeError):
            pass
        return response.reason_phrase or "unknown error"

    def _check_status(self, response: httpx.Response, description: str) -> None:
        if response.status_code >= 400:
            raise TransferError(
                f"{description} failed with status {response.status_code}: {self._format_error(response)}",
                status_code=response.status_code,
            )

    async def request(
        self,
        method: str,
        url: str,
        *,
        content: Optional[bytes] = None,
        accept_json: bool = False,
        headers: Optional[dict] = None,
        check_status: bool = True,
    ) -> httpx.Response:
        """
        Send one request through the retry policy.

        Args:
            method: HTTP method
            url: Absolute request URL
            content: Raw request body
            accept_json: Ask for a JSON body
            headers: Extra per-request headers
            check_status: Raise TransferError on a 4xx/5xx final response

        Returns:
            Final HTTP response

        Raises:
            TransferError: If the call failed for good
        """
        request_headers = dict(headers or {})
        if accept_json:
            request_headers["Accept"] = JSON_MEDIA_TYPE
        description = f"{method} {url}"

        logger.debug(f"Making request: {description}")
        response = await self.retry_policy.run(
            lambda: self.client.request(method, url, content=content, headers=request_headers),
            description,
        )
        logger.debug(f"Response received: {description} status={response.status_code}")

        if check_status:
            self._check_status(response, description)
        return response

    def _parse(self, response: httpx.Response, model: Type[ModelT], description: str) -> ModelT:
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            raise TransferError(f"{description} returned an unexpected body: {e.error_count()} validation error(s)") from e

    async def get_model(self, url: str, model: Type[ModelT]) -> ModelT:
        """GET a JSON resource and validate it against `model`."""
        response = await self.request("GET", url, accept_json=True)
        return self._parse(response, model, f"GET {url}")

    async def post_model(self, url: str, model: Type[ModelT], content: bytes = b"") -> ModelT:
        """POST `content` and validate the JSON answer against `model`."""
        response = await self.request("POST", url, content=content, accept_json=True)
        return self._parse(response, model, f"POST {url}")

    async def post_bytes(self, url: str, content: bytes) -> str:
        """POST a raw body and return the response text."""
        response = await self.request("POST", url, content=content)
        return response.text

    async def delete(self, url: str) -> None:
        await self.request("DELETE", url)

    async def download_to(self, url: str, destination: Path) -> int:
        """
        Stream a remote resource into a local file.

        The body goes to a temporary file next to `destination`, which only
        replaces `destination` once a complete body has been received. A failed
        download leaves any existing local copy untouched.

        Returns:
            Number of bytes written
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".part")
        os.close(fd)
        temp_path = Path(temp_name)
        written = 0

        async def attempt() -> httpx.Response:
            nonlocal written
            async with self.client.stream("GET", url, headers={"Accept": JSON_MEDIA_TYPE}) as response:
                if response.status_code >= 400:
                    await response.aread()
                    return response
                written = 0
                with open(temp_path, 'wb') as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        written += len(chunk)
                return response

        description = f"GET {url}"
        logger.debug(f"Downloading: {description} -> {destination}")
        try:
            response = await self.retry_policy.run(attempt, description)
            self._check_status(response, description)
            os.replace(temp_path, destination)
        finally:
            temp_path.unlink(missing_ok=True)
        return written

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    @property
    def is_closed(self) -> bool:
        return self.client.is_closed
