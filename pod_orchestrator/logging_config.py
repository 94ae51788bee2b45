"""Utility to configure logging for the pod orchestrator CLI.

This centralises logging configuration so all modules share the same
settings and makes it easy to switch between plain-text and JSON logs
that are simple to parse by log aggregation systems.

Log records go to stderr so command output on stdout stays clean.

Environment variables supported
--------------------------------
LOG_FORMAT: "plain" (default) or "json"
LOG_LEVEL:  Python logging level name (default: INFO)
LOG_FILE:   Path to write logs to a rotating file (default: unset, no file logging)
"""

import logging
import os
import pathlib
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    Call once, as early as possible in the entry point. *level* overrides
    LOG_LEVEL when given.
    """
    log_level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = os.getenv("LOG_FORMAT", "plain").lower()

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_build_formatter(log_format))
    handlers.append(stream_handler)

    log_file = os.getenv("LOG_FILE", "")
    if log_file:
        log_path = pathlib.Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(_build_formatter(log_format))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    _configure_third_party_loggers()


def _configure_third_party_loggers():
    """Configure third-party library loggers to reduce noise."""

    # httpx logs every request at INFO, which would also leak the api_key query param
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _build_formatter(log_format: str) -> logging.Formatter:
    """Return a suitable Formatter instance for *log_format*."""

    if log_format == "json":
        # Use JSON formatting – fields are flattened for easy parsing
        return JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")

    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
