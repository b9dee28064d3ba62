"""Exception classes for the transfer engine."""


class SpFilesError(Exception):
    """
    Base exception class for all transfer-related errors.
    """
    pass


class ConfigurationError(SpFilesError):
    """
    Raised when a required invocation parameter is missing or the resolved
    item set is empty. Nothing has been sent over the network yet.
    """
    pass


class AuthenticationError(SpFilesError):
    """
    Raised when the login endpoint rejects the credentials or issues no cookie.
    """
    pass


class DigestError(SpFilesError):
    """
    Raised when the request digest cannot be obtained from the context-info
    endpoint or its body is not the expected JSON.
    """
    pass


class TransferError(SpFilesError):
    """
    Raised when a single HTTP call fails for good (non-retryable status or
    retry budget exhausted).
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ItemError(SpFilesError):
    """
    Wraps any failure raised while processing one batch item.
    """

    def __init__(self, item: str, cause: BaseException):
        super().__init__(str(cause) or type(cause).__name__)
        self.item = item
        self.cause = cause

    @property
    def kind(self) -> str:
        return type(self.cause).__name__


class ApplicationError(SpFilesError):
    """
    Raised on a programming-contract violation, e.g. dispatching an operation
    the engine does not know.
    """
    pass
