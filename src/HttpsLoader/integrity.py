"""Integrity declaration parsing, digest computation, and verification.

Callers pin a remote module by declaring ``<algorithm>-<base64 digest>``
alongside the import, the same shape used by subresource integrity
attributes.  This module parses those declarations, computes digests over the
exact bytes that were retrieved (or read back from the cache), and raises
typed errors the load pipeline uses to decide between falling back to the
network and failing the request outright.
"""

from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass
from typing import Optional, Union

from .errors import IntegrityFormatError, IntegrityMismatchError

__all__ = [
    "IntegritySpec",
    "parse_integrity",
    "compute_digest",
    "format_integrity",
    "verify_integrity",
]

_INTEGRITY_PATTERN = re.compile(r"^([^-]+)-(.*)$", re.DOTALL)
_INVALID_FORMAT_MESSAGE = "Invalid integrity format, expected <algorithm>-<base64 hash>"


@dataclass(slots=True, frozen=True)
class IntegritySpec:
    """Expected digest parsed from an integrity declaration."""

    algorithm: str
    expected: str

    def __str__(self) -> str:
        return f"{self.algorithm}-{self.expected}"


def _probe_algorithm(algorithm: str) -> None:
    try:
        hasher = hashlib.new(algorithm)
    except (ValueError, TypeError) as exc:
        raise IntegrityFormatError(f"Unsupported integrity algorithm '{algorithm}'") from exc
    if hasher.digest_size == 0:
        # shake_* digests need an explicit length and cannot be compared as-is.
        raise IntegrityFormatError(f"Unsupported integrity algorithm '{algorithm}'")


def parse_integrity(value: str) -> IntegritySpec:
    """Parse ``<algorithm>-<base64 digest>`` into an :class:`IntegritySpec`.

    Args:
        value: Integrity declaration supplied with the import.

    Returns:
        Parsed declaration with the algorithm name left as written.

    Raises:
        IntegrityFormatError: If ``value`` does not match the expected shape or
            names an algorithm :mod:`hashlib` cannot construct.

    Examples:
        >>> parse_integrity("sha256-abc=")
        IntegritySpec(algorithm='sha256', expected='abc=')
    """

    if not isinstance(value, str):
        raise IntegrityFormatError(_INVALID_FORMAT_MESSAGE)
    match = _INTEGRITY_PATTERN.match(value)
    if match is None:
        raise IntegrityFormatError(_INVALID_FORMAT_MESSAGE)
    algorithm, expected = match.groups()
    _probe_algorithm(algorithm)
    return IntegritySpec(algorithm=algorithm, expected=expected)


def compute_digest(content: bytes, algorithm: str) -> str:
    """Return the base64-encoded ``algorithm`` digest of ``content``."""

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return base64.b64encode(hasher.digest()).decode("ascii")


def format_integrity(content: bytes, algorithm: str = "sha384") -> str:
    """Build the integrity declaration that ``content`` satisfies."""

    _probe_algorithm(algorithm)
    return f"{algorithm}-{compute_digest(content, algorithm)}"


def verify_integrity(
    content: bytes,
    spec: Optional[Union[IntegritySpec, str]],
) -> None:
    """Check ``content`` against ``spec``.

    A missing declaration is not a failure: when ``spec`` is ``None`` or an
    empty string the call returns immediately.

    Raises:
        IntegrityFormatError: If ``spec`` is a malformed string.
        IntegrityMismatchError: If the computed digest differs from the
            expected one. Both values are attached to the exception.
    """

    if not spec:
        return
    if isinstance(spec, str):
        spec = parse_integrity(spec)

    actual = compute_digest(content, spec.algorithm)
    if actual != spec.expected:
        raise IntegrityMismatchError(
            algorithm=spec.algorithm,
            expected=spec.expected,
            actual=actual,
        )
