"""Exception hierarchy for webhook message delivery."""

from __future__ import annotations

import json
from enum import Enum


class ErrorKind(Enum):
    """Classification of delivery failures."""

    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class WebhookError(Exception):
    """Base exception for all webhook-dispatch failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message


class MessageValidationError(WebhookError, ValueError):
    """Raised when a message or embed violates the endpoint's limits.

    Always raised synchronously at build time, never through a send future.
    """

    kind: ErrorKind = ErrorKind.VALIDATION


class RateLimitExhaustedError(WebhookError):
    """Raised when a request stays rate limited after all retries."""

    kind: ErrorKind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str, *, retry_after: float | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.retry_after: float | None = retry_after
        self.attempts: int = attempts


class TransportFailureError(WebhookError):
    """Raised when network failures or server errors outlast the retry budget."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, status: int | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.status: int | None = status
        self.attempts: int = attempts


class RequestRejectedError(WebhookError):
    """Raised when the endpoint permanently rejects a request."""

    kind: ErrorKind = ErrorKind.REJECTED

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: int | None = None,
        details: object = None,
    ) -> None:
        super().__init__(message)
        self.status: int = status
        self.code: int | None = code
        self.details: object = details

    @classmethod
    def from_response_body(cls, status: int, body: object) -> RequestRejectedError:
        """Build an error from a non-success response body.

        The endpoint reports ``{"message": ..., "code": ..., "errors": {...}}``
        for rejected payloads; any of those keys may be missing.
        """
        fields: dict[str, object] = dict(body) if isinstance(body, dict) else {}

        message = fields.get("message")
        text = message if isinstance(message, str) else f"Webhook endpoint responded with {status}"

        raw_code = fields.get("code")
        code: int | None = None
        if isinstance(raw_code, int):
            code = raw_code
        elif isinstance(raw_code, str) and raw_code.isdigit():
            code = int(raw_code)

        details = fields.get("errors")
        if details is not None:
            try:
                text = f"{text}: {json.dumps(details, separators=(',', ':'), ensure_ascii=False)}"
            except (TypeError, ValueError):
                text = f"{text}: {details}"

        return cls(text, status=status, code=code, details=details)


class SendCancelledError(WebhookError):
    """Raised for sends that were abandoned by a shutdown."""

    kind: ErrorKind = ErrorKind.CANCELLED


class TransportError(Exception):
    """Raised by transports for network-level failures.

    The send queue treats it as transient and converts it into a
    ``TransportFailureError`` once retries run out.
    """

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout: bool = timeout
