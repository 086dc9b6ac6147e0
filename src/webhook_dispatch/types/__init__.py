"""Shared types and protocols."""

from webhook_dispatch.types.models import (
    JSON_CONTENT_TYPE,
    JsonBody,
    MultipartBody,
    RequestBody,
    Response,
    WebhookRequest,
)
from webhook_dispatch.types.protocols import AttachmentSource, Transport

__all__ = [
    "JSON_CONTENT_TYPE",
    "AttachmentSource",
    "JsonBody",
    "MultipartBody",
    "RequestBody",
    "Response",
    "Transport",
    "WebhookRequest",
]
