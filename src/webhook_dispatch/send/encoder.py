"""Wire-format encoding for webhook messages.

``encode_message`` is pure: the same message always yields byte-identical
output. Messages without attachments become a compact JSON object; messages
with attachments become ``multipart/form-data`` with a ``payload_json`` part
followed by one ``file<index>`` part per attachment.
"""

from __future__ import annotations

import hashlib
import json
from typing import Final

import httpx

from webhook_dispatch.send.message import WebhookMessage
from webhook_dispatch.types.models import JsonBody, MultipartBody, RequestBody

FILE_CONTENT_TYPE: Final[str] = "application/octet-stream"
PAYLOAD_FIELD: Final[str] = "payload_json"

# httpx needs a URL to build a request; only the rendered body is used.
_RENDER_URL: Final[str] = "http://multipart.invalid/"


def message_payload(message: WebhookMessage) -> dict[str, object]:
    """Build the JSON object for a message, omitting unset fields.

    Keys appear in the order ``content``, ``username``, ``avatar_url``,
    ``tts``, ``embeds``.
    """
    payload: dict[str, object] = {}
    if message.content is not None:
        payload["content"] = message.content
    if message.username is not None:
        payload["username"] = message.username
    if message.avatar_url is not None:
        payload["avatar_url"] = message.avatar_url
    if message.tts:
        payload["tts"] = True
    if message.embeds:
        payload["embeds"] = [embed.to_payload() for embed in message.embeds]
    return payload


def dump_json(payload: dict[str, object]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_message(message: WebhookMessage) -> RequestBody:
    """Encode a message into its request body.

    Args:
        message: The message to encode

    Returns:
        ``JsonBody`` when the message has no attachments, ``MultipartBody``
        otherwise
    """
    payload_json = dump_json(message_payload(message))
    if not message.is_file:
        return JsonBody(data=payload_json)

    boundary = _derive_boundary(payload_json, message)
    request = httpx.Request(
        "POST",
        _RENDER_URL,
        data={PAYLOAD_FIELD: payload_json.decode("utf-8")},
        files=[
            (f"file{index}", (attachment.name, attachment.data, FILE_CONTENT_TYPE))
            for index, attachment in enumerate(message.attachments)
        ],
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
    )
    return MultipartBody(data=request.read(), boundary=boundary)


def _derive_boundary(payload_json: bytes, message: WebhookMessage) -> str:
    """Derive the multipart boundary from the message contents."""
    digest = hashlib.sha256(payload_json)
    for attachment in message.attachments:
        digest.update(attachment.name.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(attachment.data)
    return digest.hexdigest()[:32]
