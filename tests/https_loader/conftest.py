"""Shared fixtures for HttpsLoader tests."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from HttpsLoader.net import reset_http_client
from HttpsLoader.settings import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Drop environment overrides and memoised state between tests."""

    for name in list(os.environ):
        if name.upper().startswith("HTTPS_LOADER_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_http_client()
    yield
    reset_settings()
    reset_http_client()
    package_logger = logging.getLogger("HttpsLoader")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_https_loader_managed", False):
            package_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    """A project root (holding ``pyproject.toml``) that is also the working directory."""

    root = tmp_path / "project"
    root.mkdir()
    (root / "pyproject.toml").write_text("[project]\nname = 'demo'\n", encoding="utf-8")
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def cache_dir(project_dir: Path) -> Path:
    return project_dir / ".cache" / "https-loader"


@pytest.fixture
def rootless_dir(tmp_path: Path, monkeypatch) -> Path:
    """A working directory with no project root marker above it."""

    path = tmp_path / "loose"
    path.mkdir()
    monkeypatch.chdir(path)
    monkeypatch.setenv("HTTPS_LOADER_CACHE__ROOT_MARKERS", '["no-such-marker.https-loader"]')
    reset_settings()
    return path
