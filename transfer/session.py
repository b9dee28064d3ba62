"""Credential exchange and session bootstrap."""

from dataclasses import dataclass
from typing import Optional, Union
from xml.etree import ElementTree
from xml.sax.saxutils import escape

import httpx
from pydantic import ValidationError

from common.constants import (
    CONTEXT_INFO_ENDPOINT,
    JSON_MEDIA_TYPE,
    LOGIN_ENDPOINT,
    SOAP_LOGIN_ACTION,
    SOAP_NAMESPACE,
)
from common.logging_config import get_logger
from transfer.api_models import ContextInfoResponse
from transfer.config import EngineSettings
from transfer.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DigestError,
    TransferError,
)
from transfer.retry import RetryPolicy
from transfer.transport import TransportChannel
from transfer.types import AuthCookie, Session

logger = get_logger(__name__)

LOGIN_ENVELOPE = (
    "<?xml version='1.0' encoding='utf-8'?>"
    "<soap:Envelope xmlns:xsi='http://www.w3.org/2001/XMLSchema-instance'"
    " xmlns:xsd='http://www.w3.org/2001/XMLSchema'"
    " xmlns:soap='http://schemas.xmlsoap.org/soap/envelope/'>"
    "<soap:Body><Login xmlns='" + SOAP_NAMESPACE + "'>"
    "<username>{username}</username><password>{password}</password>"
    "</Login></soap:Body></soap:Envelope>"
)


@dataclass(frozen=True)
class Authenticated:
    cookie: AuthCookie


@dataclass(frozen=True)
class Rejected:
    reason: str


LoginResult = Union[Authenticated, Rejected]


def build_login_envelope(username: str, password: str) -> str:
    """SOAP Login request body with both credentials XML-escaped."""
    return LOGIN_ENVELOPE.format(username=escape(username), password=escape(password))


def _parse_login_body(body: bytes) -> tuple[Optional[str], Optional[str]]:
    """
    Read (ErrorCode, CookieName) from a SOAP LoginResult.

    Returns (None, None) when the body is not parseable XML; the cookie jar
    then decides on its own.
    """
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError:
        return None, None

    ns = {"sp": SOAP_NAMESPACE}
    error_code = root.findtext(".//sp:LoginResult/sp:ErrorCode", namespaces=ns)
    cookie_name = root.findtext(".//sp:LoginResult/sp:CookieName", namespaces=ns)
    return error_code, cookie_name


def decode_login_response(response: httpx.Response) -> LoginResult:
    """
    Decide the login outcome from status, SOAP error code and issued cookies.

    Args:
        response: Response of the SOAP Login call

    Returns:
        Authenticated with the session cookie, or Rejected with a reason
    """
    if response.status_code >= 400:
        return Rejected(f"login endpoint answered {response.status_code} {response.reason_phrase}")

    error_code, cookie_name = _parse_login_body(response.content)
    if error_code and error_code != "NoError":
        return Rejected(f"login rejected: {error_code}")

    cookies = list(response.cookies.jar)
    if not cookies:
        return Rejected("no authentication cookie issued")

    chosen = next((c for c in cookies if c.name == cookie_name), cookies[0])
    return Authenticated(AuthCookie(name=chosen.name, value=chosen.value or ""))


async def authenticate(
    channel: TransportChannel,
    root_uri: str,
    username: str,
    password: str,
) -> LoginResult:
    """
    Exchange user name and password for an authentication cookie.

    Raises:
        TransferError: If the login endpoint could not be reached at all
    """
    logger.info(f"Authenticating user: {username}")
    response = await channel.request(
        "POST",
        f"{root_uri.rstrip('/')}{LOGIN_ENDPOINT}",
        content=build_login_envelope(username, password).encode("utf-8"),
        headers={
            "SOAPAction": SOAP_LOGIN_ACTION,
            "Content-Type": "text/xml; charset=utf-8",
        },
        check_status=False,
    )
    return decode_login_response(response)


async def fetch_form_digest(channel: TransportChannel, root_uri: str, cookie: AuthCookie) -> str:
    """
    Obtain the request digest required by state-changing calls.

    Raises:
        DigestError: If the endpoint fails or the body lacks FormDigestValue
    """
    url = f"{root_uri.rstrip('/')}{CONTEXT_INFO_ENDPOINT}"
    try:
        response = await channel.request(
            "POST",
            url,
            content=b"",
            accept_json=True,
            headers={"Cookie": cookie.header_value(), "Accept": JSON_MEDIA_TYPE},
        )
    except TransferError as e:
        raise DigestError(f"Cannot obtain request digest: {e}") from e

    try:
        return ContextInfoResponse.model_validate_json(response.content).form_digest_value
    except ValidationError as e:
        raise DigestError(f"Malformed context info response from {url}") from e


async def open_session(
    root_uri: str,
    folder_path: str,
    username: str,
    password: str,
    settings: Optional[EngineSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Session:
    """
    Authenticate and build the immutable Session shared by all contexts.

    The two network calls run strictly in sequence: the digest request needs
    the cookie returned by the login.

    Raises:
        ConfigurationError: If root URI or credentials are missing
        AuthenticationError: If the login is rejected
        DigestError: If no digest can be obtained
    """
    if not root_uri:
        raise ConfigurationError("no server root uri")
    if not username:
        raise ConfigurationError("userName is not specified")
    if not password:
        raise ConfigurationError("password is not specified")

    settings = settings or EngineSettings()
    channel = TransportChannel(
        timeout=settings.timeout,
        retry_policy=RetryPolicy(
            max_attempts=settings.max_attempts,
            backoff_multiplier=settings.backoff_multiplier,
            initial_delay=settings.retry_initial_delay,
        ),
        transport=transport,
    )
    try:
        try:
            result = await authenticate(channel, root_uri, username, password)
        except TransferError as e:
            raise AuthenticationError(f"authentication failed: {e}") from e

        if isinstance(result, Rejected):
            logger.warning(f"Authentication failed for user {username}: {result.reason}")
            raise AuthenticationError(f"authentication failed: {result.reason}")

        digest = await fetch_form_digest(channel, root_uri, result.cookie)
    finally:
        await channel.aclose()

    logger.info(f"Session established [root={root_uri}, folder={folder_path or '/'}]")
    return Session(
        root_uri=root_uri.rstrip('/'),
        folder_path=folder_path or "",
        cookie=result.cookie,
        digest=digest,
        chunk_size=settings.chunk_size,
    )
