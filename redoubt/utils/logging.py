"""
Project-wide logging setup for redoubt.

Provides a simple, consistent console logger with optional JSON output.
Controlled via environment variables:
- REDOUBT_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
- REDOUBT_LOG_FORMAT: text|json (default: text)
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _get_level(level: Optional[str] = None) -> int:
    level = (level or os.getenv("REDOUBT_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level, logging.INFO)


def build_formatter(fmt: Optional[str] = None) -> logging.Formatter:
    """Return the JSON formatter for ``json``, the plain text one otherwise."""
    fmt = (fmt or os.getenv("REDOUBT_LOG_FORMAT", "text")).lower()
    if fmt == "json":
        return jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    force: bool = False,
    *,
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Configure root logging for console output.

    If a handler is already present and force is False, this is a no-op.
    Explicit ``level``/``fmt`` arguments win over the environment.
    """
    target_logger = logger or logging.getLogger()
    if target_logger.handlers and not force:
        return

    if force:
        for h in list(target_logger.handlers):
            target_logger.removeHandler(h)

    target_logger.setLevel(_get_level(level))

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(fmt))
    target_logger.addHandler(handler)
