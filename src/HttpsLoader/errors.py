"""Exception hierarchy shared across integrity checks, caching, and fetching.

A load request can fail while parsing the caller's integrity declaration,
while locating or writing the on-disk cache, or while retrieving the module
over the network.  This module groups those failure modes under a single base
class so hook callers can catch everything the loader raises, while the
pipeline itself distinguishes recoverable cache-side failures from terminal
network-side ones.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "HttpsLoaderError",
    "SettingsError",
    "NotHandledError",
    "CacheUnavailableError",
    "IntegrityError",
    "IntegrityFormatError",
    "IntegrityMismatchError",
    "FetchError",
    "PersistError",
]


class HttpsLoaderError(RuntimeError):
    """Base exception for every failure raised by the loader."""


class SettingsError(HttpsLoaderError):
    """Raised when environment or explicit settings fail validation."""


class NotHandledError(HttpsLoaderError):
    """Raised when a request must be delegated but no next hook was supplied."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No next hook available to handle {url!r}")
        self.url = url


class CacheUnavailableError(HttpsLoaderError):
    """Raised when the cache is required but no project root could be found."""


class IntegrityError(HttpsLoaderError):
    """Base class for integrity declaration and verification failures."""


class IntegrityFormatError(IntegrityError):
    """Raised when an integrity string is malformed or names an unusable algorithm."""


class IntegrityMismatchError(IntegrityError):
    """Raised when the computed digest differs from the declared one."""

    def __init__(self, *, algorithm: str, expected: str, actual: str) -> None:
        super().__init__(f"Integrity check failed: expected {expected}, got {actual}")
        self.algorithm = algorithm
        self.expected = expected
        self.actual = actual


class FetchError(HttpsLoaderError):
    """Raised when an HTTP retrieval fails at the transport or status level."""

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PersistError(HttpsLoaderError):
    """Raised when fetched content cannot be written to the cache."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


# === NAVMAP v1 ===
# {
#   "module": "HttpsLoader.errors",
#   "purpose": "Define the exception hierarchy used across integrity, cache, and fetch stages",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "integrity", "name": "Integrity Errors", "anchor": "INT", "kind": "api"},
#     {"id": "io", "name": "Fetch & Persist Errors", "anchor": "IO", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
