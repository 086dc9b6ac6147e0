"""Structured logging with per-delivery context.

Every log line emitted while the send queue processes a message carries that
message's delivery id, so retries of one message can be followed across
rate limit waits and backoffs.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Final, TextIO, override

from webhook_dispatch.utils.sanitization import sanitize_args, sanitize_url, sanitize_value

PACKAGE_LOGGER: Final[str] = "webhook_dispatch"

_delivery_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("delivery_id", default=None)

_STANDARD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created",
        "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "exc_info", "exc_text",
        "stack_info", "taskName", "message",
    }
)


class LogFormat(Enum):
    """Supported log output formats."""

    JSON = "json"
    KEYVALUE = "keyvalue"


def get_delivery_id() -> str | None:
    """Return the delivery id bound to the current context, if any."""
    return _delivery_id.get()


@contextmanager
def delivery_id_context(delivery_id: str | None) -> Generator[None, None, None]:
    """Bind a delivery id to log records for the duration of the block."""
    token = _delivery_id.set(delivery_id)
    try:
        yield
    finally:
        _delivery_id.reset(token)


class DeliveryIdFilter(logging.Filter):
    """Attach the current delivery id to every record as ``delivery_id``."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        record.delivery_id = get_delivery_id()
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter producing JSON or key=value lines with secrets redacted."""

    def __init__(self, format_type: LogFormat = LogFormat.KEYVALUE) -> None:
        super().__init__()
        self.format_type: LogFormat = format_type

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data = self._build_log_data(record)
        if self.format_type == LogFormat.JSON:
            return json.dumps(log_data, ensure_ascii=False, separators=(",", ":"), default=str)
        return " ".join(self._format_pair(key, value) for key, value in log_data.items())

    def _build_log_data(self, record: logging.LogRecord) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        if isinstance(record.args, tuple):
            message = str(record.msg) % sanitize_args(record.args) if record.args else str(record.msg)
        else:
            message = record.getMessage()

        log_data: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_url(message),
        }
        delivery_id = getattr(record, "delivery_id", None) or get_delivery_id()
        if delivery_id is not None:
            log_data["delivery_id"] = delivery_id
        if record.exc_info:
            log_data["exception"] = sanitize_url(self.formatException(record.exc_info))

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRIBUTES and key not in log_data and key != "delivery_id":
                log_data[key] = sanitize_value(value, field_name=key)
        return log_data

    def _format_pair(self, key: str, value: object) -> str:
        if value is None:
            return f"{key}=null"
        if isinstance(value, (int, float, bool)):
            return f"{key}={value}"
        escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
        return f'{key}="{escaped}"'


def configure_logging(
    level: int | str = logging.INFO,
    log_format: LogFormat = LogFormat.KEYVALUE,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Attach a structured handler to the package logger.

    Applications that configure logging themselves do not need this; the
    library only ever logs through ``logging.getLogger(__name__)``.

    Returns:
        The installed handler, so callers can remove it again
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter(log_format))
    handler.addFilter(DeliveryIdFilter())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.addHandler(handler)
    return handler
