"""Structured JSON Logger for Mindstore.

Provides JSON-formatted logging for observability and debugging.
Each log entry includes timestamp, level, message, and optional context fields
like content_hash for tracing a single saved item across polls.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in via `extra`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON objects.

    Output format:
        {
            "ts": "2026-01-23T10:30:00.123456+00:00",
            "level": "INFO",
            "msg": "Polling armed",
            "logger": "mindstore.core.reconciler",
            "content_hash": "abc123",
            ...extra fields...
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="microseconds"),
            "level": record.levelname,
            "msg": record.getMessage(),
        }

        if record.name and record.name != "root":
            log_entry["logger"] = record.name

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class ItemLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps content_hash on every message.

    Usage:
        logger = get_item_logger(__name__, item.key)
        logger.warning("Delete failed")  # includes content_hash
    """

    def __init__(self, logger: logging.Logger, content_hash: str):
        super().__init__(logger, {"content_hash": content_hash})

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra["content_hash"] = self.extra["content_hash"]
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(level: str = "INFO", stream: Any = None) -> None:
    """Configure the root logger with JSON formatting.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Output stream (defaults to sys.stderr).
    """
    if stream is None:
        stream = sys.stderr

    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance (root logger when name is None)."""
    return logging.getLogger(name)


def get_item_logger(name: str, content_hash: str) -> ItemLoggerAdapter:
    """Get a logger adapter that includes content_hash in all messages.

    Args:
        name: Logger name (typically __name__).
        content_hash: Key of the content item being handled.

    Returns:
        An ItemLoggerAdapter bound to the item.
    """
    return ItemLoggerAdapter(get_logger(name), content_hash)


_logging_configured: bool = False


def ensure_logging_configured(level: str = "INFO") -> None:
    """Configure logging once; later calls are no-ops."""
    global _logging_configured
    if not _logging_configured:
        setup_logging(level)
        _logging_configured = True


def reset_logging() -> None:
    """Reset logging configuration (used by tests)."""
    global _logging_configured
    _logging_configured = False

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
