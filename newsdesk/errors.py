"""Error taxonomy shared by the ingestion, embedding and research layers.

Public operations catch these and return tagged results; the ``kind`` of the
error ends up in the result's ``error_kind`` field so callers can decide per
item whether to retry, skip or surface it.
"""

from typing import Optional

import httpx


class NewsdeskError(Exception):
    """Base class for all newsdesk errors."""

    kind = "error"


class TransportError(NewsdeskError):
    """Network level failure (refused, reset, timeout, bad HTTP status)."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        reason: str = "unknown",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class UpstreamError(TransportError):
    """The upstream service answered, but with an error."""

    kind = "upstream"


class ParseError(NewsdeskError):
    """Malformed input that cannot be parsed."""

    kind = "parse"


class DateParseError(ParseError):
    """A date string matched none of the supported formats."""


class ValidationError(NewsdeskError):
    """Caller supplied parameters are out of bounds."""

    kind = "validation"


class TooShortError(ValidationError):
    """Text is too short to be embedded."""

    kind = "too_short"


class ShapeMismatchError(NewsdeskError):
    """Upstream response does not match the expected contract."""

    kind = "shape_mismatch"


class DimensionMismatchError(ShapeMismatchError, ValueError):
    """Two vectors of different length were compared."""

    kind = "dimension_mismatch"


class StreamError(NewsdeskError):
    """The research stream reported an error event."""

    kind = "stream"


class InvalidTransitionError(NewsdeskError):
    """A research session was moved to a state it cannot reach."""

    kind = "invalid_transition"


def classify_transport_error(exc: BaseException) -> str:
    """Map an httpx exception to a short transport failure reason."""
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.ConnectError):
        message = str(exc).lower()
        if "reset" in message:
            return "connection_reset"
        return "connection_refused"
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return "connection_reset"
    if isinstance(exc, httpx.HTTPStatusError):
        return "http_status"
    return "unknown"


def transport_error_from(exc: httpx.HTTPError, context: str) -> TransportError:
    """Wrap an httpx error into a classified ``TransportError``."""
    reason = classify_transport_error(exc)
    status_code = None
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        message = f"{context}: HTTP {status_code}"
    elif reason == "timeout":
        message = f"{context}: request timed out"
    else:
        message = f"{context}: {reason.replace('_', ' ')} ({exc})"
    return TransportError(message, reason=reason, status_code=status_code)
