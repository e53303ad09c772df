"""Exceptions raised by the Discogs client."""

from typing import Optional


class ApiError(Exception):
    """Base exception for Discogs API errors."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthError(ApiError):
    """Raised on 401 Unauthorized. Aborts the whole run."""

    pass


class NotFoundError(ApiError):
    """Raised on 404 Not Found."""

    pass


class ServerError(ApiError):
    """Raised on a 5xx response."""

    pass


class TransportError(ApiError):
    """Raised when the request times out or the connection drops."""

    pass


class RateLimitError(ApiError):
    """Raised on 429. Handled inside the client, never seen by callers."""

    pass


class DecodeError(ApiError):
    """Raised when a response body is not the JSON shape we expect."""

    pass


class ClientError(ApiError):
    """Raised on any other non-success response."""

    pass
