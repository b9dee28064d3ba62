"""Transfer engine: session bootstrap, chunked upload and batch dispatch."""

from transfer.config import EngineSettings
from transfer.engine import ExecutionContext, TransferEngine
from transfer.exceptions import (
    ApplicationError,
    AuthenticationError,
    ConfigurationError,
    DigestError,
    ItemError,
    SpFilesError,
    TransferError,
)
from transfer.session import open_session
from transfer.types import ItemResult, Operation, Session, render_report

__all__ = [
    "EngineSettings",
    "ExecutionContext",
    "TransferEngine",
    "ApplicationError",
    "AuthenticationError",
    "ConfigurationError",
    "DigestError",
    "ItemError",
    "SpFilesError",
    "TransferError",
    "open_session",
    "ItemResult",
    "Operation",
    "Session",
    "render_report",
]
