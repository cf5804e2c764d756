"""Load and resolve hooks for modules identified by HTTPS URLs.

The hooks follow the chained-hook contract used by module systems that let
loaders intercept resolution and loading:

* ``resolve(specifier, context, next_resolve)`` joins specifiers that appear
  inside a remote module against that module's URL.
* ``load(url, context, next_load)`` retrieves remote source, consulting the
  project-local cache first and verifying any ``integrity`` import attribute.

Anything that is not a network URL is handed to the ``next_*`` hook untouched.

Load pipeline
-------------

1. Parse the ``integrity`` attribute. A malformed value fails immediately.
2. Try the cache. A read failure or an integrity mismatch is not an error: the
   cached copy is advisory and the request falls through to the network.
3. Fetch, following redirects, and verify. A mismatch here is fatal.
4. Overwrite the cache entry with the fresh bytes. Write failures are fatal.

The cache stage and the persist stage only run when the active
:class:`~HttpsLoader.settings.CacheMode` enables caching.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Union
from urllib.parse import urljoin

import httpx

from .cache import CacheStore, locate_cache_directory
from .errors import CacheUnavailableError, IntegrityMismatchError, NotHandledError
from .integrity import IntegritySpec, parse_integrity, verify_integrity
from .net import fetch_bytes
from .settings import CacheMode, LoaderSettings, get_settings

__all__ = [
    "ModuleFormat",
    "LoadContext",
    "LoadRequest",
    "LoadResult",
    "ResolveResult",
    "HttpsLoader",
    "resolve_format",
    "load",
    "resolve",
]

LOGGER = logging.getLogger("HttpsLoader.loader")


class ModuleFormat(str, Enum):
    """Output formats understood by the host module system."""

    BUILTIN = "builtin"
    COMMONJS = "commonjs"
    COMMONJS_TYPESCRIPT = "commonjs-typescript"
    JSON = "json"
    MODULE = "module"
    MODULE_TYPESCRIPT = "module-typescript"
    WASM = "wasm"


DEFAULT_DECLARED_TYPE = ModuleFormat.MODULE.value
_FORMATS_BY_TAG = {member.value: member for member in ModuleFormat}


def resolve_format(declared_type: Optional[str]) -> ModuleFormat:
    """Map a declared ``type`` attribute to a :class:`ModuleFormat`.

    A missing tag means ``module``. Unknown tags fall back to ``commonjs``
    rather than failing the load.

    Examples:
        >>> resolve_format("json")
        <ModuleFormat.JSON: 'json'>
        >>> resolve_format("css")
        <ModuleFormat.COMMONJS: 'commonjs'>
    """

    if declared_type is None:
        declared_type = DEFAULT_DECLARED_TYPE
    return _FORMATS_BY_TAG.get(declared_type, ModuleFormat.COMMONJS)


@dataclass(frozen=True)
class LoadContext:
    """Per-call hook context: import attributes and the importing module's URL."""

    import_attributes: Mapping[str, str] = field(default_factory=dict)
    parent_url: Optional[str] = None

    @classmethod
    def coerce(cls, value: Union["LoadContext", Mapping[str, Any], None]) -> "LoadContext":
        """Accept a :class:`LoadContext` or a host-shaped mapping."""

        if isinstance(value, LoadContext):
            return value
        if value is None:
            return cls()
        attributes = value.get("import_attributes", value.get("importAttributes")) or {}
        parent_url = value.get("parent_url", value.get("parentURL"))
        return cls(import_attributes=dict(attributes), parent_url=parent_url)


@dataclass(frozen=True)
class LoadRequest:
    url: str
    declared_type: Optional[str] = None
    integrity: Optional[str] = None

    @classmethod
    def from_context(cls, url: str, context: LoadContext) -> "LoadRequest":
        attributes = context.import_attributes
        return cls(
            url=url,
            declared_type=attributes.get("type"),
            integrity=attributes.get("integrity") or None,
        )


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a handled load: the module bytes and their format."""

    format: ModuleFormat
    content: bytes
    short_circuit: bool = True
    from_cache: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class ResolveResult:
    url: str
    short_circuit: bool = True


NextLoad = Callable[[str, Any], Awaitable[Any]]
NextResolve = Callable[[str, Any], Awaitable[Any]]


class HttpsLoader:
    """Load pipeline bound to one set of settings.

    Args:
        settings: Loader settings; defaults to the process-wide settings.
        cache_mode: Override for ``settings.cache.mode``.
        client: Shared HTTP client. When omitted each fetch uses a
            short-lived client.
        cwd: Directory the project-root search starts from. Defaults to the
            working directory at load time.
    """

    def __init__(
        self,
        settings: Optional[LoaderSettings] = None,
        *,
        cache_mode: Optional[Union[CacheMode, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        cwd: Optional[str] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache_mode = CacheMode(cache_mode) if cache_mode is not None else self.settings.cache.mode
        self.client = client
        self.cwd = cwd

    def handles(self, url: str) -> bool:
        """Return ``True`` when ``url`` uses one of the configured network schemes."""

        scheme, separator, _ = url.partition("://")
        return bool(separator) and scheme.lower() in self.settings.schemes

    def cache_store(self) -> Optional[CacheStore]:
        """Return the store for the active mode, or ``None`` when caching is skipped.

        Raises:
            CacheUnavailableError: In ``required`` mode when no project root
                exists or the cache directory cannot be created.
        """

        if self.cache_mode is CacheMode.OFF:
            return None
        cache = self.settings.cache
        try:
            directory = locate_cache_directory(
                cache.name,
                start=self.cwd,
                markers=cache.root_markers,
                namespace=cache.namespace,
            )
        except OSError as exc:
            if self.cache_mode is CacheMode.REQUIRED:
                raise CacheUnavailableError(f"Cache directory could not be created: {exc}") from exc
            LOGGER.info(
                "cache directory unusable, fetching live",
                extra={"stage": "cache", "reason": type(exc).__name__},
            )
            return None
        if directory is None:
            if self.cache_mode is CacheMode.REQUIRED:
                raise CacheUnavailableError("Cache directory not found")
            LOGGER.info(
                "cache unavailable, fetching live",
                extra={"stage": "cache", "markers": list(cache.root_markers)},
            )
            return None
        return CacheStore(directory)

    async def load(
        self,
        url: str,
        context: Union[LoadContext, Mapping[str, Any], None] = None,
        next_load: Optional[NextLoad] = None,
    ) -> Any:
        """Handle ``url`` or delegate it to ``next_load``.

        Returns:
            :class:`LoadResult` for network URLs, otherwise whatever
            ``next_load`` returns.

        Raises:
            IntegrityFormatError: If the ``integrity`` attribute is malformed.
            IntegrityMismatchError: If freshly fetched content fails verification.
            CacheUnavailableError: If the cache is required but cannot be located.
            FetchError: If the network retrieval fails.
            PersistError: If the fetched content cannot be cached.
        """

        if not self.handles(url):
            if next_load is None:
                raise NotHandledError(url)
            return await next_load(url, context)

        request = LoadRequest.from_context(url, LoadContext.coerce(context))
        spec = parse_integrity(request.integrity) if request.integrity else None
        store = self.cache_store()

        if store is not None:
            cached = await self._read_cached(store, request, spec)
            if cached is not None:
                return LoadResult(
                    format=resolve_format(request.declared_type),
                    content=cached,
                    from_cache=True,
                )

        content = await fetch_bytes(request.url, client=self.client, settings=self.settings)
        verify_integrity(content, spec)

        if store is not None:
            path = await asyncio.to_thread(store.write, request.url, content)
            LOGGER.debug(
                "cached module",
                extra={"stage": "persist", "url": url, "cache_dir": str(path.parent)},
            )

        return LoadResult(format=resolve_format(request.declared_type), content=content)

    async def _read_cached(
        self,
        store: CacheStore,
        request: LoadRequest,
        spec: Optional[IntegritySpec],
    ) -> Optional[bytes]:
        try:
            content = await asyncio.to_thread(store.read, request.url)
        except OSError as exc:
            LOGGER.debug(
                "cache miss",
                extra={"stage": "cache", "url": request.url, "reason": type(exc).__name__},
            )
            return None
        try:
            verify_integrity(content, spec)
        except IntegrityMismatchError as exc:
            LOGGER.debug(
                "cached copy failed integrity, refetching",
                extra={
                    "stage": "cache",
                    "url": request.url,
                    "expected": exc.expected,
                    "actual": exc.actual,
                },
            )
            return None
        LOGGER.debug("cache hit", extra={"stage": "cache", "url": request.url})
        return content

    async def resolve(
        self,
        specifier: str,
        context: Union[LoadContext, Mapping[str, Any], None] = None,
        next_resolve: Optional[NextResolve] = None,
    ) -> Any:
        """Join ``specifier`` against a remote parent module, or delegate."""

        parent_url = LoadContext.coerce(context).parent_url
        if not parent_url or not self.handles(parent_url):
            if next_resolve is None:
                raise NotHandledError(specifier)
            return await next_resolve(specifier, context)

        return ResolveResult(url=urljoin(parent_url, specifier))


async def load(
    url: str,
    context: Union[LoadContext, Mapping[str, Any], None] = None,
    next_load: Optional[NextLoad] = None,
) -> Any:
    """Module-level load hook using the process-wide settings."""

    return await HttpsLoader().load(url, context, next_load)


async def resolve(
    specifier: str,
    context: Union[LoadContext, Mapping[str, Any], None] = None,
    next_resolve: Optional[NextResolve] = None,
) -> Any:
    """Module-level resolve hook using the process-wide settings."""

    return await HttpsLoader().resolve(specifier, context, next_resolve)
