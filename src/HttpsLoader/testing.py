"""Test helpers for exercising the loader without real network access."""

from __future__ import annotations

import contextlib
from typing import Iterator, List

import httpx

from .net import configure_http_client, reset_http_client
from .settings import HttpSettings

__all__ = ["use_mock_http_client", "RecordingHandler"]


@contextlib.contextmanager
def use_mock_http_client(transport: httpx.AsyncBaseTransport, **client_kwargs) -> Iterator[None]:
    """Temporarily route every default-client fetch through ``transport``."""

    def _factory(http: HttpSettings) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=transport,
            follow_redirects=True,
            max_redirects=http.max_redirects,
            **client_kwargs,
        )

    configure_http_client(_factory)
    try:
        yield
    finally:
        reset_http_client()


class RecordingHandler:
    """``httpx.MockTransport`` handler serving fixed routes and recording requests.

    Routes map a URL to either response bytes or a ``("redirect", target)``
    tuple. Unknown URLs answer 404.
    """

    def __init__(self, routes: dict) -> None:
        self.routes = dict(routes)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(route, tuple) and route[0] == "redirect":
            return httpx.Response(302, headers={"Location": route[1]})
        return httpx.Response(200, content=route)

    @property
    def urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
