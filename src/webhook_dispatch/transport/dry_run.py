"""Transport that records requests instead of sending them."""

from __future__ import annotations

import logging

from webhook_dispatch.types.models import Response, WebhookRequest
from webhook_dispatch.utils.sanitization import sanitize_url

logger = logging.getLogger(__name__)


class DryRunTransport:
    """Records every request and answers with a canned response.

    Useful for dry runs and for exercising the send pipeline without a
    network.
    """

    def __init__(self, response: Response | None = None) -> None:
        self.response: Response = response or Response(status=204)
        self.requests: list[WebhookRequest] = []

    async def execute(self, request: WebhookRequest) -> Response:
        self.requests.append(request)
        logger.info(
            "[DRY RUN] %s %s (%d bytes, %s)",
            request.method,
            sanitize_url(request.url),
            len(request.body),
            request.headers.get("Content-Type", "unknown"),
        )
        return self.response
