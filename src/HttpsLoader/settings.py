"""Typed settings for the HTTPS module loader.

Settings are assembled from defaults and ``HTTPS_LOADER_*`` environment
variables via ``pydantic-settings``.  Nested groups use ``__`` as the
delimiter, so ``HTTPS_LOADER_CACHE__MODE=off`` switches the loader to the
always-live variant and ``HTTPS_LOADER_HTTP__TIMEOUT=5`` bounds each fetch.

Example:
    >>> from HttpsLoader.settings import get_settings
    >>> get_settings().cache.name
    'https-loader'
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import SettingsError

__all__ = [
    "CacheMode",
    "HttpSettings",
    "CacheSettings",
    "LoggingSettings",
    "LoaderSettings",
    "get_settings",
    "reset_settings",
]


class CacheMode(str, Enum):
    """Which load pipeline variant is active."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    OFF = "off"


class HttpSettings(BaseModel):
    """HTTP client settings for the fetch client."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    timeout: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        description="Overall per-request timeout in seconds",
    )
    max_redirects: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum redirect hops followed before failing",
    )
    http2: bool = Field(default=False, description="Enable HTTP/2 support (requires h2)")
    trust_env: bool = Field(
        default=True,
        description="Honor HTTP(S)_PROXY and NO_PROXY environment variables",
    )
    user_agent: str = Field(
        default="HttpsLoader (+https://pypi.org/project/https-loader/)",
        description="User-Agent header value",
    )


class CacheSettings(BaseModel):
    """On-disk module cache settings."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    mode: CacheMode = Field(
        default=CacheMode.REQUIRED,
        description="required: fail without a project root; optional: fetch live instead; off: never cache",
    )
    name: str = Field(default="https-loader", min_length=1, description="Cache directory name")
    namespace: str = Field(
        default=".cache",
        min_length=1,
        description="Directory under the project root that holds named caches",
    )
    root_markers: Tuple[str, ...] = Field(
        default=("pyproject.toml", "package.json"),
        min_length=1,
        description="Files whose presence marks a project root",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        """Accept case-insensitive mode names."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    emit_json_logs: bool = Field(
        default=False,
        description="Write JSON-formatted logs to the log directory",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return logging.getLevelName(self.level)


class LoaderSettings(BaseSettings):
    """Top-level settings combining environment overrides and defaults."""

    model_config = SettingsConfigDict(
        env_prefix="HTTPS_LOADER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    schemes: Tuple[str, ...] = Field(
        default=("https",),
        min_length=1,
        description="URL schemes handled by the loader; everything else is delegated",
    )
    http: HttpSettings = Field(default_factory=HttpSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("schemes", mode="after")
    @classmethod
    def normalize_schemes(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Store schemes lower-cased without the ``://`` suffix."""
        return tuple(scheme.lower().rstrip(":/") for scheme in v)

    @classmethod
    def build(cls, **overrides: object) -> "LoaderSettings":
        """Construct settings, translating validation failures to :class:`SettingsError`."""
        try:
            return cls(**overrides)
        except PydanticValidationError as exc:
            raise SettingsError(f"Invalid loader settings: {exc}") from exc


_SETTINGS_LOCK = threading.Lock()
_SETTINGS: Optional[LoaderSettings] = None


def get_settings() -> LoaderSettings:
    """Return the memoised process-wide settings."""

    global _SETTINGS  # noqa: PLW0603

    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            _SETTINGS = LoaderSettings.build()
        return _SETTINGS


def reset_settings() -> None:
    """Drop the memoised settings so the next access re-reads the environment."""

    global _SETTINGS  # noqa: PLW0603

    with _SETTINGS_LOCK:
        _SETTINGS = None
