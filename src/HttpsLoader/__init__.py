"""Load modules identified by HTTPS URLs with integrity checks and a project-local cache.

Public API:
    >>> from HttpsLoader import HttpsLoader, LoadContext, load
    >>> # result = await load("https://example.test/a.mjs", LoadContext())
"""

from .errors import (
    CacheUnavailableError,
    FetchError,
    HttpsLoaderError,
    IntegrityError,
    IntegrityFormatError,
    IntegrityMismatchError,
    NotHandledError,
    PersistError,
    SettingsError,
)
from .integrity import IntegritySpec, format_integrity, parse_integrity, verify_integrity
from .loader import (
    HttpsLoader,
    LoadContext,
    LoadRequest,
    LoadResult,
    ModuleFormat,
    ResolveResult,
    load,
    resolve,
    resolve_format,
)
from .settings import CacheMode, LoaderSettings, get_settings, reset_settings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CacheMode",
    "CacheUnavailableError",
    "FetchError",
    "HttpsLoader",
    "HttpsLoaderError",
    "IntegrityError",
    "IntegrityFormatError",
    "IntegrityMismatchError",
    "IntegritySpec",
    "LoadContext",
    "LoadRequest",
    "LoadResult",
    "LoaderSettings",
    "ModuleFormat",
    "NotHandledError",
    "PersistError",
    "ResolveResult",
    "SettingsError",
    "format_integrity",
    "get_settings",
    "load",
    "parse_integrity",
    "reset_settings",
    "resolve",
    "resolve_format",
    "verify_integrity",
]
