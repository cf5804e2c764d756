"""Project-local module cache: directory discovery and URL-keyed storage.

The cache lives beside the project that imports remote modules, at
``<project-root>/<namespace>/<name>``.  Each cached URL maps to exactly one
file whose name is the URL without its scheme, percent-escaped into a single
path segment, so the cache can be inspected or cleared with ordinary file
tools.  There is no index and no metadata: a file existing is the only state.
"""

from __future__ import annotations

import contextlib
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Sequence, Union
from urllib.parse import quote

from .errors import PersistError

__all__ = [
    "find_project_root",
    "locate_cache_directory",
    "cache_key_for",
    "CacheStore",
]

LOGGER = logging.getLogger("HttpsLoader.cache")

DEFAULT_ROOT_MARKERS = ("pyproject.toml", "package.json")
DEFAULT_NAMESPACE = ".cache"
DEFAULT_CACHE_NAME = "https-loader"

PathLike = Union[str, os.PathLike]


def find_project_root(start: PathLike, markers: Sequence[str] = DEFAULT_ROOT_MARKERS) -> Optional[Path]:
    """Return the nearest ancestor of ``start`` (inclusive) holding a marker file."""

    origin = Path(start).resolve()
    for candidate in (origin, *origin.parents):
        for marker in markers:
            if (candidate / marker).is_file():
                return candidate
    return None


def locate_cache_directory(
    name: str = DEFAULT_CACHE_NAME,
    *,
    start: Optional[PathLike] = None,
    markers: Sequence[str] = DEFAULT_ROOT_MARKERS,
    namespace: str = DEFAULT_NAMESPACE,
) -> Optional[Path]:
    """Find (and create) the named cache directory for the enclosing project.

    Args:
        name: Cache directory name under ``namespace``.
        start: Directory to search upward from. Defaults to the working directory.
        markers: File names identifying a project root.
        namespace: Directory under the project root holding named caches.

    Returns:
        Absolute cache directory, or ``None`` when no project root exists.
    """

    root = find_project_root(start if start is not None else Path.cwd(), markers)
    if root is None:
        LOGGER.debug("no project root found", extra={"stage": "cache", "markers": list(markers)})
        return None

    cache_dir = root / namespace / name
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def cache_key_for(url: str) -> str:
    """Return the file name used to cache ``url``.

    Examples:
        >>> cache_key_for("https://example.test/a.mjs")
        'example.test%2Fa.mjs'
    """

    _, separator, remainder = url.partition("://")
    if not separator:
        remainder = url
    return quote(remainder, safe="")


class CacheStore:
    """Read and overwrite cached module bytes keyed by URL."""

    def __init__(self, directory: PathLike) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"CacheStore({str(self.directory)!r})"

    def path_for(self, url: str) -> Path:
        return self.directory / cache_key_for(url)

    def read(self, url: str) -> bytes:
        """Return cached bytes for ``url``.

        Raises:
            OSError: Whatever the filesystem reports, including
                :class:`FileNotFoundError` when nothing is cached.
        """

        return self.path_for(url).read_bytes()

    def write(self, url: str, content: bytes) -> Path:
        """Overwrite the cache entry for ``url`` with ``content``.

        The bytes land in a sibling temporary file that is atomically renamed
        over the entry, so readers never observe a partial write.

        Raises:
            PersistError: If the entry cannot be written.
        """

        path = self.path_for(url)
        temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:12]}.tmp")
        try:
            temp_path.write_bytes(content)
            os.replace(temp_path, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise PersistError(f"Failed to write cache entry {path}: {exc}", path=path) from exc
        return path
