"""Project-wide constants (service endpoints, transfer defaults)."""

CHUNK_SIZE_BYTES: int = 1024 * 1024  # service limit for one upload request body

DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_BACKOFF_MULTIPLIER: float = 2.0
DEFAULT_RETRY_INITIAL_DELAY: float = 0.5
DEFAULT_MAX_CONCURRENCY: int = 8

LOGIN_ENDPOINT = "/_vti_bin/authentication.asmx"
CONTEXT_INFO_ENDPOINT = "/_api/ContextInfo"

SOAP_LOGIN_ACTION = "http://schemas.microsoft.com/sharepoint/soap/Login"
SOAP_NAMESPACE = "http://schemas.microsoft.com/sharepoint/soap/"

DIGEST_HEADER = "x-requestdigest"
JSON_MEDIA_TYPE = "application/json"
