"""Message model, builders and wire encoding."""

from __future__ import annotations

from .attachment import Attachment, BytesSource, PathSource, StreamSource
from .builder import WebhookMessageBuilder
from .embed import Embed, EmbedAuthor, EmbedBuilder, EmbedField, EmbedFooter, EmbedMedia
from .encoder import encode_message, message_payload
from .message import WebhookMessage

__all__ = [
    "Attachment",
    "BytesSource",
    "Embed",
    "EmbedAuthor",
    "EmbedBuilder",
    "EmbedField",
    "EmbedFooter",
    "EmbedMedia",
    "PathSource",
    "StreamSource",
    "WebhookMessage",
    "WebhookMessageBuilder",
    "encode_message",
    "message_payload",
]
