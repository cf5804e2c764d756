"""Settings defaults, environment overrides, and validation."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from HttpsLoader.errors import SettingsError
from HttpsLoader.settings import CacheMode, LoaderSettings, get_settings, reset_settings


def test_defaults() -> None:
    settings = get_settings()

    assert settings.schemes == ("https",)
    assert settings.cache.mode is CacheMode.REQUIRED
    assert settings.cache.name == "https-loader"
    assert settings.cache.namespace == ".cache"
    assert settings.cache.root_markers == ("pyproject.toml", "package.json")
    assert settings.http.timeout == 30.0
    assert settings.logging.level_int() == logging.INFO


def test_settings_are_memoised_until_reset(monkeypatch) -> None:
    first = get_settings()
    monkeypatch.setenv("HTTPS_LOADER_CACHE__MODE", "optional")

    assert get_settings() is first

    reset_settings()
    assert get_settings().cache.mode is CacheMode.OPTIONAL


def test_nested_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("HTTPS_LOADER_HTTP__TIMEOUT", "5")
    monkeypatch.setenv("HTTPS_LOADER_CACHE__NAMESPACE", "build/cache")
    monkeypatch.setenv("HTTPS_LOADER_LOGGING__LEVEL", "debug")

    settings = LoaderSettings.build()

    assert settings.http.timeout == 5.0
    assert settings.cache.namespace == "build/cache"
    assert settings.logging.level == "DEBUG"


def test_schemes_are_normalised() -> None:
    settings = LoaderSettings.build(schemes=("HTTPS://", "http:"))

    assert settings.schemes == ("https", "http")


@pytest.mark.parametrize(
    "overrides",
    [
        {"logging": {"level": "chatty"}},
        {"cache": {"mode": "sometimes"}},
        {"http": {"timeout": 0}},
        {"schemes": ()},
    ],
)
def test_invalid_values_raise_settings_error(overrides) -> None:
    with pytest.raises(SettingsError):
        LoaderSettings.build(**overrides)


def test_settings_are_frozen() -> None:
    settings = get_settings()

    with pytest.raises(ValidationError):
        settings.cache.mode = CacheMode.OFF  # type: ignore[misc]
