"""Data models shared between the encoder, the send queue and transports.

This module defines immutable dataclasses used for type-safe data transfer
between the message pipeline and the injected transport.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Final, Literal

JSON_CONTENT_TYPE: Final[str] = "application/json"


@dataclass(slots=True, frozen=True)
class Response:
    """HTTP response.

    Represents an HTTP response with status code, body, and headers. The body
    is the decoded JSON object when the endpoint returned one, otherwise empty.
    """

    status: int
    body: Mapping[str, object] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the status code is in the 2xx range."""
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Look up a header case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass(slots=True, frozen=True)
class JsonBody:
    """Encoded body for messages without attachments."""

    data: bytes
    kind: Literal["json"] = "json"

    @property
    def content_type(self) -> str:
        return JSON_CONTENT_TYPE


@dataclass(slots=True, frozen=True)
class MultipartBody:
    """Encoded ``multipart/form-data`` body for messages with attachments."""

    data: bytes
    boundary: str
    kind: Literal["multipart"] = "multipart"

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


type RequestBody = JsonBody | MultipartBody


@dataclass(slots=True, frozen=True)
class WebhookRequest:
    """A fully encoded request handed to a transport."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: bytes
