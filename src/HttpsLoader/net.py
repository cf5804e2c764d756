"""HTTPX fetch client used to retrieve remote module source.

Each fetch runs on an :class:`httpx.AsyncClient` that follows redirects, so
the body returned is always the one served by the final hop.  Callers may pass
their own client; otherwise a short-lived client is produced by the active
factory, which tests swap out via :func:`configure_http_client` (see
:mod:`HttpsLoader.testing`).

Failures at the transport or status level are wrapped in
:class:`~HttpsLoader.errors.FetchError` and never retried here.
"""

from __future__ import annotations

import logging
import ssl
import threading
import time
from typing import Callable, Optional

import certifi
import httpx

from .errors import FetchError
from .settings import HttpSettings, LoaderSettings, get_settings

__all__ = [
    "build_http_client",
    "configure_http_client",
    "reset_http_client",
    "fetch_bytes",
]

LOGGER = logging.getLogger("HttpsLoader.net")

ClientFactory = Callable[[HttpSettings], httpx.AsyncClient]

_CLIENT_LOCK = threading.RLock()
_CLIENT_FACTORY: Optional[ClientFactory] = None


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def build_http_client(http: HttpSettings) -> httpx.AsyncClient:
    """Create an async client configured from ``http`` settings."""

    return httpx.AsyncClient(
        verify=_build_ssl_context(),
        follow_redirects=True,
        max_redirects=http.max_redirects,
        timeout=httpx.Timeout(http.timeout),
        http2=http.http2,
        trust_env=http.trust_env,
        headers={"User-Agent": http.user_agent},
    )


def configure_http_client(factory: Optional[ClientFactory]) -> None:
    """Install ``factory`` as the source of clients for subsequent fetches."""

    global _CLIENT_FACTORY  # noqa: PLW0603

    with _CLIENT_LOCK:
        _CLIENT_FACTORY = factory


def reset_http_client() -> None:
    """Restore the default client factory."""

    configure_http_client(None)


def _new_client(http: HttpSettings) -> httpx.AsyncClient:
    with _CLIENT_LOCK:
        factory = _CLIENT_FACTORY or build_http_client
    return factory(http)


async def _get(client: httpx.AsyncClient, url: str) -> bytes:
    try:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"GET {url} failed with HTTP {exc.response.status_code}",
            url=url,
            status_code=exc.response.status_code,
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"GET {url} failed: {exc}", url=url) from exc

    if response.history:
        LOGGER.debug(
            "followed redirects",
            extra={
                "stage": "fetch",
                "url": url,
                "final_url": str(response.url),
                "hops": len(response.history),
            },
        )
    return response.content


async def fetch_bytes(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[LoaderSettings] = None,
) -> bytes:
    """Retrieve ``url`` and return the final response body.

    Args:
        url: Absolute URL to GET.
        client: Client to reuse. When omitted, one is created for this call
            and closed afterwards.
        settings: Settings used to build the client. Defaults to
            :func:`~HttpsLoader.settings.get_settings`.

    Raises:
        FetchError: On malformed URLs, connection failures, timeouts, too many
            redirects, or any non-success status.
    """

    started = time.perf_counter()
    if client is not None:
        content = await _get(client, url)
    else:
        http = (settings or get_settings()).http
        async with _new_client(http) as owned:
            content = await _get(owned, url)

    LOGGER.debug(
        "fetched module",
        extra={
            "stage": "fetch",
            "url": url,
            "bytes": len(content),
            "elapsed_sec": round(time.perf_counter() - started, 4),
        },
    )
    return content
