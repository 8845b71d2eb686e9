"""Exception hierarchy for the Tinybird SDK."""

from __future__ import annotations

from typing import Optional


class TinybirdError(Exception):
    """Base exception for all SDK errors."""

    retryable = False


class ConfigurationError(TinybirdError, ValueError):
    """Invalid client configuration or call arguments.

    Raised before any network call is made and never retried.
    """

    pass


class TransportError(TinybirdError):
    """Connection or timeout failure of a single attempt."""

    retryable = True


class ApiError(TinybirdError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "", body: str = "") -> None:
        message = f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}"
        if body:
            message = f"{message} - {body}"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body


class ClientError(ApiError):
    """4xx response other than 429. The request itself is wrong."""

    pass


class RateLimitError(ApiError):
    """429 response."""

    retryable = True


class ServerError(ApiError):
    """5xx response."""

    retryable = True


class DecodeError(TinybirdError):
    """A successful response carried a payload that could not be decoded."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MaxRetriesExceededError(TinybirdError):
    """Every attempt failed with a retryable error."""

    def __init__(self, last_error: Optional[TinybirdError], attempts: int) -> None:
        super().__init__(f"max retries exceeded: {last_error}")
        self.last_error = last_error
        self.attempts = attempts

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.last_error, "status_code", None)


class RequestCancelledError(TinybirdError):
    """The caller cancelled the operation."""

    pass


def error_for_status(status_code: int, reason: str = "", body: str = "") -> ApiError:
    """Build the error class matching a non-2xx status code."""
    if status_code == 429:
        return RateLimitError(status_code, reason, body)
    if 400 <= status_code < 500:
        return ClientError(status_code, reason, body)
    if 500 <= status_code < 600:
        return ServerError(status_code, reason, body)
    return ApiError(status_code, reason, body)


__all__ = [
    "TinybirdError",
    "ConfigurationError",
    "TransportError",
    "ApiError",
    "ClientError",
    "RateLimitError",
    "ServerError",
    "DecodeError",
    "MaxRetriesExceededError",
    "RequestCancelledError",
    "error_for_status",
]
