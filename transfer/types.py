"""Value types shared by the transfer engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from common.constants import DIGEST_HEADER
from transfer.exceptions import ItemError


class Operation(str, Enum):
    """Operation applied to every item of a batch."""

    UPLOAD = "upload"
    DOWNLOAD = "download"
    REMOVE = "remove"
    LIST = "list"


@dataclass(frozen=True)
class ItemResult:
    """Outcome of one batch item: a success message or a captured error."""

    item: str
    ok: bool
    message: str
    error_kind: Optional[str] = None

    @classmethod
    def success(cls, item: str, message: str) -> "ItemResult":
        return cls(item=item, ok=True, message=message)

    @classmethod
    def failure(cls, item: str, error: ItemError) -> "ItemResult":
        return cls(item=item, ok=False, message=str(error), error_kind=error.kind)

    def render(self) -> str:
        if self.ok:
            return self.message
        return f"{self.item}: {self.message}"


def render_report(results: Iterable[ItemResult]) -> str:
    """Join rendered item results, one entry per item, in the given order."""
    return '\n'.join(result.render() for result in results)


@dataclass(frozen=True)
class AuthCookie:
    """Authentication cookie issued by the login endpoint."""

    name: str
    value: str

    def header_value(self) -> str:
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class Session:
    """
    Authenticated view of one remote document folder.

    Built once by the bootstrap and never mutated afterwards, so every forked
    execution context can read it without locking. The cookie and digest
    expire on the service side; nothing here refreshes them.
    """

    root_uri: str
    folder_path: str
    cookie: AuthCookie
    digest: str
    chunk_size: int

    def auth_headers(self) -> dict[str, str]:
        """Headers every authenticated call carries."""
        return {
            "Cookie": self.cookie.header_value(),
            DIGEST_HEADER: self.digest,
        }
