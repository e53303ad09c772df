"""Shared fixtures: a scripted stand-in for RateLimitedClient."""

from typing import Any, Callable, Dict, List, Tuple

import pytest

from discogs_filter.client import ApiStats, NotFoundError


class FakeClient:
    """
    Answers GETs from a route table keyed by path.

    A route is a dict (returned as is), an exception instance (raised), or a
    callable taking the params dict and returning either of those.
    """

    def __init__(self, routes: Dict[str, Any] = None):
        self.routes = routes or {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.mutations: List[Tuple[str, str, str, Dict[str, Any]]] = []
        self.mutation_errors: Dict[Tuple[str, str], Exception] = {}

    def get(self, label: str, path: str, params: Dict[str, Any] = None) -> Any:
        params = dict(params or {})
        self.calls.append((label, path, params))
        if path not in self.routes:
            raise NotFoundError(f"404 Not Found: {path}", 404)
        result = self.routes[path]
        if callable(result):
            result = result(params)
        if isinstance(result, Exception):
            raise result
        return result

    def mutate(self, method: str, label: str, path: str, json_body: Dict[str, Any]):
        self.mutations.append((method, label, path, json_body))
        error = self.mutation_errors.get((method, path))
        if error is not None:
            raise error

    def paths(self) -> List[str]:
        return [path for _, path, _ in self.calls]


def paged(key: str, pages: List[List[Dict[str, Any]]]) -> Callable[[Dict[str, Any]], Dict]:
    """Route serving `pages` one per page number under `key`."""

    def handler(params):
        page = int(params.get("page", 1))
        return {
            "pagination": {"page": page, "pages": len(pages)},
            key: pages[page - 1] if pages else [],
        }

    return handler


def versions(*pages: List[str]) -> Callable[[Dict[str, Any]], Dict]:
    """Master versions route; each argument is one page of major_formats lists."""
    return paged("versions", [[{"major_formats": fmts} for fmts in page] for page in pages])


def failing(error: Exception, times: int, then: Any) -> Callable[[Dict[str, Any]], Any]:
    """Route that raises `error` for the first `times` calls, then answers."""
    state = {"calls": 0}

    def handler(params):
        state["calls"] += 1
        if state["calls"] <= times:
            return error
        return then(params) if callable(then) else then

    return handler


@pytest.fixture
def stats():
    return ApiStats()


@pytest.fixture
def fake_client():
    return FakeClient()
