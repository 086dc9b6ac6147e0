"""Logging and sanitization helpers."""

from __future__ import annotations

from .logging import (
    DeliveryIdFilter,
    LogFormat,
    StructuredFormatter,
    configure_logging,
    delivery_id_context,
    get_delivery_id,
)
from .sanitization import REDACTED, sanitize_exception, sanitize_url, sanitize_value

__all__ = [
    "REDACTED",
    "DeliveryIdFilter",
    "LogFormat",
    "StructuredFormatter",
    "configure_logging",
    "delivery_id_context",
    "get_delivery_id",
    "sanitize_exception",
    "sanitize_url",
    "sanitize_value",
]
