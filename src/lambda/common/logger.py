"""Structured JSON logging for CloudWatch, with secret redaction."""

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone

SERVICE_NAME = "s3-to-onedrive"

# Context keys whose values must never reach the logs
REDACTED_KEYS = frozenset(
    {"access_token", "refresh_token", "authorization", "client_secret"}
)
REDACTED = "***"


def redact(data: dict) -> dict:
    """Return a copy of ``data`` with secret-bearing keys masked."""
    return {
        key: REDACTED if key.lower() in REDACTED_KEYS else value
        for key, value in data.items()
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, one line per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
            "function_name": os.environ.get("AWS_LAMBDA_FUNCTION_NAME", "local"),
            "request_id": getattr(record, "request_id", ""),
        }

        context = getattr(record, "context_data", None)
        if isinstance(context, dict):
            log_entry.update(redact(context))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "details": redact(getattr(exc_value, "details", None) or {}),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Create (once) a logger writing JSON lines to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
        logger.propagate = False
    return logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    request_id: str = "",
    exc_info: bool = False,
    **kwargs,
) -> None:
    """Log a message with structured context fields merged into the entry."""
    extra = {"request_id": request_id, "context_data": kwargs}
    logger.log(level, message, extra=extra, exc_info=exc_info)
