"""
Structured Logging Utilities

This module centralizes logging setup for the HTTPS loader. Console output is
kept terse for interactive use, while an optional JSON-lines file captures the
``extra`` fields the pipeline attaches to each event (stage, url, digests,
byte counts) for later inspection.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from .settings import LoaderSettings, get_settings

LOGGER_NAME = "HttpsLoader"
LOG_FILE_NAME = "https-loader.jsonl"
_MANAGED_FLAG = "_https_loader_managed"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def redact_url(url: str) -> str:
    """Drop credentials and query strings from ``url`` before it is logged.

    Examples:
        >>> redact_url("https://user:pw@example.test/a.mjs?token=1")
        'https://example.test/a.mjs'
    """
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            if key in {"url", "final_url"} and isinstance(value, str):
                value = redact_url(value)
            log_obj[key] = value
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def setup_logging(
    settings: Optional[LoaderSettings] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure console and optional JSON file handlers for the loader.

    Args:
        settings: Settings supplying level and JSON toggle. Defaults to
            :func:`~HttpsLoader.settings.get_settings`.
        log_dir: Directory for the JSON log. When omitted the JSON log is
            written only if ``emit_json_logs`` is enabled, to
            ``$HTTPS_LOADER_LOG_DIR`` or the working directory.

    Returns:
        The package logger.
    """
    config = (settings or get_settings()).logging

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.level_int())

    for handler in list(logger.handlers):
        if getattr(handler, _MANAGED_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    setattr(stream_handler, _MANAGED_FLAG, True)
    logger.addHandler(stream_handler)

    if log_dir is None and config.emit_json_logs:
        log_dir = Path(os.environ.get("HTTPS_LOADER_LOG_DIR") or Path.cwd()).expanduser()
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        setattr(file_handler, _MANAGED_FLAG, True)
        logger.addHandler(file_handler)

    logger.propagate = True
    return logger


__all__ = ["setup_logging", "JSONFormatter", "redact_url"]
