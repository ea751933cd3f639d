"""Logging configuration for videohook.

Provides JSON logging for production environments and a secret-masking
formatter so bearer tokens and webhook signatures never reach the logs.
JSON output is enabled via VIDEOHOOK_LOG_FORMAT=json.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import UTC, datetime
from typing import Any

# Patterns for values that must never be logged verbatim
SECRET_PATTERNS = [
    # Bearer tokens (Stream API)
    (r"(Bearer\s+)[a-zA-Z0-9\-_.~+/=]+", r"\1****"),
    # Webhook signatures inside a Webhook-Signature header
    (r"(sig1=)[0-9a-zA-Z]+", r"\1****"),
    # secret=..., token=..., api_key=...
    (r"((?:secret|token|api[_-]?key)[=:]\s*[\"']?)([a-zA-Z0-9_\-]{8,})", r"\1****"),
]


def mask_secrets(message: str) -> str:
    """Mask potential secrets in a log message."""
    if not message:
        return message

    masked = message
    for pattern, replacement in SECRET_PATTERNS:
        masked = re.sub(pattern, replacement, masked, flags=re.IGNORECASE)
    return masked


class MaskingFormatter(logging.Formatter):
    """Formatter that masks secrets in the rendered message."""

    def format(self, record: logging.LogRecord) -> str:
        return mask_secrets(super().format(record))


class JSONFormatter(MaskingFormatter):
    """JSON log formatter for structured logging.

    Outputs one JSON object per line for log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_secrets(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry)


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default: INFO.
        json_format: Use JSON format. Default: True if VIDEOHOOK_LOG_FORMAT=json.
    """
    level = level or os.environ.get("VIDEOHOOK_LOG_LEVEL", "INFO")
    if json_format is None:
        json_format = os.environ.get("VIDEOHOOK_LOG_FORMAT", "") == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(MaskingFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger.addHandler(console_handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
