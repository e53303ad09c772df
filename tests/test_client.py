"""Tests for RateLimitedClient against a scripted requests session."""

import pytest
import requests

from discogs_filter.client import (
    ApiStats,
    AuthError,
    ClientError,
    DecodeError,
    NotFoundError,
    RateLimitedClient,
    ServerError,
    TransportError,
)
from discogs_filter.resolver import TransientPolicy


class FakeResponse:
    def __init__(self, status_code=200, body=None, remaining=50, headers=None):
        self.status_code = status_code
        self._body = body if body is not None else {}
        self.headers = {"X-Discogs-Ratelimit-Remaining": str(remaining)}
        self.headers.update(headers or {})

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Returns (or raises) the queued outcomes in order."""

    def __init__(self, *outcomes):
        self.headers = {}
        self.outcomes = list(outcomes)
        self.requests = []

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_client(*outcomes):
    stats = ApiStats()
    sleeps = []
    session = FakeSession(*outcomes)
    client = RateLimitedClient("secret", stats, session=session, sleep=sleeps.append)
    return client, session, stats, sleeps


def test_auth_and_user_agent_headers_are_set():
    _, session, _, _ = make_client()

    assert session.headers["Authorization"] == "Discogs token=secret"
    assert session.headers["User-Agent"].startswith("DiscogsFormatFilter/")


def test_get_returns_body_and_records_usage():
    client, session, stats, sleeps = make_client(FakeResponse(body={"id": 1}))

    assert client.get("artist-detail", "/artists/1", {"page": 1}) == {"id": 1}

    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "https://api.discogs.com/artists/1")
    assert kwargs["params"] == {"page": 1}
    assert stats.total_requests == 1
    assert stats.by_endpoint["artist-detail"].count == 1
    assert sleeps == []


def test_absolute_urls_pass_through():
    client, session, _, _ = make_client(FakeResponse())

    client.get("next", "https://api.discogs.com/artists/1/releases?page=2")

    assert session.requests[0][1] == "https://api.discogs.com/artists/1/releases?page=2"


def test_low_quota_pauses_after_success():
    client, _, stats, sleeps = make_client(FakeResponse(body={"ok": True}, remaining=2))

    assert client.get("search", "/database/search") == {"ok": True}

    assert sleeps == [10.0]
    assert stats.rate_limit_pauses == 1


def test_quota_at_threshold_does_not_pause():
    client, _, _, sleeps = make_client(FakeResponse(remaining=3))

    client.get("search", "/database/search")

    assert sleeps == []


def test_429_waits_and_retries_same_request():
    client, session, stats, sleeps = make_client(
        FakeResponse(status_code=429),
        FakeResponse(status_code=429),
        FakeResponse(body={"id": 5}),
    )

    assert client.get("release-detail", "/releases/5") == {"id": 5}

    assert sleeps == [30.0, 30.0]
    assert len({url for _, url, _ in session.requests}) == 1
    assert len(session.requests) == 3
    assert stats.retries_429 == 2
    assert stats.by_endpoint["release-detail"].count == 3


@pytest.mark.parametrize(
    "status,error",
    [
        (401, AuthError),
        (404, NotFoundError),
        (500, ServerError),
        (503, ServerError),
        (403, ClientError),
        (422, ClientError),
    ],
)
def test_status_codes_map_to_errors(status, error):
    client, session, _, sleeps = make_client(FakeResponse(status_code=status))

    with pytest.raises(error) as excinfo:
        client.get("master-detail", "/masters/1")

    assert excinfo.value.status == status
    assert len(session.requests) == 1
    assert sleeps == []


@pytest.mark.parametrize(
    "exc",
    [
        requests.Timeout("read timed out"),
        requests.ConnectionError("connection reset by peer"),
        requests.exceptions.ChunkedEncodingError("Connection broken: ConnectionResetError(104)"),
        requests.exceptions.ContentDecodingError("incorrect header check"),
    ],
)
def test_transport_failures(exc):
    client, _, stats, _ = make_client(exc)

    with pytest.raises(TransportError) as excinfo:
        client.get("master-versions", "/masters/1/versions")

    assert stats.total_requests == 0
    assert TransientPolicy().is_transient(excinfo.value)


def test_unparseable_body_is_decode_error():
    client, _, _, _ = make_client(FakeResponse(body=ValueError("Expecting value")))

    with pytest.raises(DecodeError):
        client.get("release-detail", "/releases/1")


def test_mutate_sends_json_body():
    client, session, stats, _ = make_client(FakeResponse(status_code=201), FakeResponse(status_code=204))

    client.mutate("PUT", "wantlist-put", "/users/me/wants/9", {})
    client.mutate("post", "wantlist-post", "/users/me/wants/9", {"notes": "hi"})

    assert [(m, kw["json"]) for m, _, kw in session.requests] == [
        ("PUT", {}),
        ("POST", {"notes": "hi"}),
    ]
    assert stats.by_endpoint["wantlist-post"].count == 1


def test_mutate_retries_429():
    client, session, _, sleeps = make_client(FakeResponse(status_code=429), FakeResponse())

    client.mutate("PUT", "wantlist-put", "/users/me/wants/9", {})

    assert len(session.requests) == 2
    assert sleeps == [30.0]


def test_mutate_rejects_other_methods():
    client, session, _, _ = make_client()

    with pytest.raises(ValueError):
        client.mutate("DELETE", "wantlist-delete", "/users/me/wants/9", {})

    assert session.requests == []
