"""Protocol definitions for pluggable collaborators.

This module defines structural subtyping protocols for the capabilities the
library consumes without requiring inheritance.
"""

from typing import Protocol, runtime_checkable

from webhook_dispatch.types.models import Response, WebhookRequest


@runtime_checkable
class Transport(Protocol):
    """Protocol for HTTP transports.

    A transport executes one fully encoded request and returns the response.
    Network failures (connection errors, timeouts) must surface as
    ``webhook_dispatch.errors.TransportError`` so the send queue can tell them
    apart from HTTP-level failures.
    """

    async def execute(self, request: WebhookRequest) -> Response:
        """Execute a request.

        Args:
            request: Method, URL, headers and encoded body

        Returns:
            HTTP response with status, decoded body, and headers
        """
        ...


@runtime_checkable
class AttachmentSource(Protocol):
    """Protocol for anything that can be turned into attachment bytes."""

    def read_all_bytes(self) -> bytes:
        """Read the complete payload.

        Returns:
            The raw bytes of the attachment
        """
        ...
