"""Discogs HTTP client with quota tracking and 429 handling."""

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ..config import (
    API_BASE,
    DEFAULT_QUOTA,
    LOW_QUOTA_COOLDOWN,
    LOW_QUOTA_THRESHOLD,
    RATE_LIMIT_COOLDOWN,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
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

logger = logging.getLogger(__name__)

MUTATING_METHODS = ("PUT", "POST")


def _header_int(response: requests.Response, name: str, default: int) -> int:
    try:
        return int(response.headers.get(name, default))
    except (TypeError, ValueError):
        return default


class RateLimitedClient:
    """
    Authenticated, blocking Discogs API client.

    Every request carries the token and user agent. After a successful
    response the remaining quota is checked and, when it is nearly spent,
    the client sleeps before handing control back. A 429 response is waited
    out and the same request reissued until it goes through.

    There is exactly one outstanding request at a time; the Discogs quota
    is shared per token, so overlapping calls would only trip it sooner.
    """

    def __init__(
        self,
        token: str,
        stats: ApiStats,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        verbose: bool = False,
    ):
        self.stats = stats
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Authorization": f"Discogs token={token}",
        })
        self._sleep = sleep
        self.verbose = verbose

    def get(
        self, label: str, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        GET a JSON resource.

        Args:
            label: Endpoint name used for usage statistics
            path: API path (e.g. "/masters/123") or absolute URL
            params: Query string parameters

        Returns:
            The decoded JSON body

        Raises:
            AuthError, NotFoundError, ServerError, TransportError,
            ClientError, DecodeError
        """
        response = self._send("GET", label, path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"JSON parse: {e}", response.status_code) from e

    def mutate(self, method: str, label: str, path: str, json_body: Dict[str, Any]):
        """Send a PUT or POST with a JSON body, discarding the response."""
        method = method.upper()
        if method not in MUTATING_METHODS:
            raise ValueError(f"unsupported method: {method}")
        self._send(method, label, path, json=json_body)

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{API_BASE}{path}"

    def _send(self, method: str, label: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        while True:
            try:
                return self._attempt(method, label, url, path, **kwargs)
            except RateLimitError:
                logger.warning(f"Rate-limited on {label}. Waiting {RATE_LIMIT_COOLDOWN:.0f}s...")
                self._pause(RATE_LIMIT_COOLDOWN)

    def _attempt(
        self, method: str, label: str, url: str, path: str, **kwargs
    ) -> requests.Response:
        start = time.monotonic()
        try:
            response = self.session.request(
                method, url, timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.Timeout as e:
            raise TransportError(f"Request timed out: {e}") from e
        except (requests.ConnectionError, requests.exceptions.ChunkedEncodingError) as e:
            raise TransportError(f"Connection reset: {e}") from e
        except requests.exceptions.ContentDecodingError as e:
            raise TransportError(f"Body could not be decoded in transit: {e}") from e
        except requests.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e

        elapsed = time.monotonic() - start
        self.stats.record(label, elapsed)
        status = response.status_code

        if self.verbose:
            used = _header_int(response, "X-Discogs-Ratelimit-Used", 0)
            limit = _header_int(response, "X-Discogs-Ratelimit", DEFAULT_QUOTA)
            logger.debug(
                f"[API] {label} {method} {path} => {status}  "
                f"{elapsed * 1000:.0f}ms  rate:{used}/{limit}"
            )

        if status == 429:
            self.stats.record_429()
            raise RateLimitError("429 Too Many Requests", status)
        if status == 401:
            raise AuthError("401 Unauthorized. Check your DISCOGS_TOKEN.", status)
        if status == 404:
            raise NotFoundError(f"404 Not Found: {path}", status)
        if status >= 500:
            raise ServerError(f"{status} server error: {path}", status)
        if status >= 400:
            raise ClientError(f"{status} error: {path}", status)

        remaining = _header_int(response, "X-Discogs-Ratelimit-Remaining", DEFAULT_QUOTA)
        if remaining < LOW_QUOTA_THRESHOLD:
            logger.info(
                f"Rate-limit remaining={remaining}, pausing {LOW_QUOTA_COOLDOWN:.0f}s"
            )
            self._pause(LOW_QUOTA_COOLDOWN)

        return response

    def _pause(self, seconds: float):
        start = time.monotonic()
        self._sleep(seconds)
        self.stats.record_rate_pause(time.monotonic() - start)
