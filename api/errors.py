"""Error taxonomy shared by the fetcher, the source adapters and the aggregator."""

from typing import Optional, Union

ErrorCode = Optional[Union[int, str]]

# HTTP status -> user-facing message
STATUS_MESSAGES: dict[int, str] = {
    401: "Invalid API key",
    403: "Access forbidden",
    426: "Upgrade required",
    429: "Rate limit exceeded",
}


class ResearchError(Exception):
    """Base class for every error a source can surface."""

    kind = "unknown"

    def __init__(self, message: str, code: ErrorCode = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(ResearchError):
    """A source is missing its API key or another required setting."""

    kind = "configuration"


class ValidationError(ResearchError):
    """The query cannot be sent to any source."""

    kind = "validation"


class TransportError(ResearchError):
    """Network failure, timeout, or a non-2xx HTTP status."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None, timed_out: bool = False):
        super().__init__(message, code=status_code if status_code is not None else ("timeout" if timed_out else None))
        self.status_code = status_code
        self.timed_out = timed_out


class PayloadError(ResearchError):
    """HTTP succeeded but the body reports failure or has an unexpected shape."""

    kind = "payload"


def user_message(error: Exception) -> str:
    """Map an exception to the message shown to the end user."""
    if isinstance(error, TransportError):
        if error.status_code in STATUS_MESSAGES:
            return STATUS_MESSAGES[error.status_code]
        if error.timed_out:
            return "Request timed out"
    if isinstance(error, ResearchError):
        return error.message
    return str(error) or type(error).__name__


def error_code(error: Exception) -> ErrorCode:
    return error.code if isinstance(error, ResearchError) else None


def error_kind(error: Exception) -> str:
    return error.kind if isinstance(error, ResearchError) else "unknown"
