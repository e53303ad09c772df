from .errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
)
from .stats import ApiStats
from .discogs import RateLimitedClient

__all__ = [
    "ApiError",
    "ApiStats",
    "AuthError",
    "ClientError",
    "DecodeError",
    "NotFoundError",
    "RateLimitError",
    "RateLimitedClient",
    "ServerError",
    "TransportError",
]
