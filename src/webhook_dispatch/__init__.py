"""Webhook Dispatch - post messages to webhook endpoints within their rate limits.

This package provides an immutable message model with builders, a
deterministic JSON/multipart encoder, and an ordered, rate-limit-aware send
queue behind a small client facade.
"""

from webhook_dispatch.client import WebhookClient
from webhook_dispatch.config import ClientConfig, RetryConfig, load_config
from webhook_dispatch.dispatch import GlobalRateLimit, RateLimitState, RateLimitTracker, SendQueue
from webhook_dispatch.errors import (
    MessageValidationError,
    RateLimitExhaustedError,
    RequestRejectedError,
    SendCancelledError,
    TransportError,
    TransportFailureError,
    WebhookError,
)
from webhook_dispatch.send import (
    Attachment,
    Embed,
    EmbedBuilder,
    WebhookMessage,
    WebhookMessageBuilder,
    encode_message,
)
from webhook_dispatch.transport import AiohttpTransport, DryRunTransport
from webhook_dispatch.types import JsonBody, MultipartBody, Response, Transport, WebhookRequest

__all__ = [
    "AiohttpTransport",
    "Attachment",
    "ClientConfig",
    "DryRunTransport",
    "Embed",
    "EmbedBuilder",
    "GlobalRateLimit",
    "JsonBody",
    "MessageValidationError",
    "MultipartBody",
    "RateLimitExhaustedError",
    "RateLimitState",
    "RateLimitTracker",
    "RequestRejectedError",
    "RetryConfig",
    "Response",
    "SendCancelledError",
    "SendQueue",
    "Transport",
    "TransportError",
    "TransportFailureError",
    "WebhookClient",
    "WebhookError",
    "WebhookMessage",
    "WebhookMessageBuilder",
    "WebhookRequest",
    "encode_message",
    "load_config",
]
