"""Per-client send queue with rate limit gating and retries."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field

from webhook_dispatch.dispatch.rate_limit import RateLimitTracker, Sleep
from webhook_dispatch.errors import (
    RateLimitExhaustedError,
    RequestRejectedError,
    SendCancelledError,
    TransportError,
    TransportFailureError,
)
from webhook_dispatch.send.encoder import encode_message
from webhook_dispatch.send.message import WebhookMessage
from webhook_dispatch.types.models import RequestBody, Response, WebhookRequest
from webhook_dispatch.types.protocols import Transport
from webhook_dispatch.utils.logging import delivery_id_context
from webhook_dispatch.utils.sanitization import sanitize_exception, sanitize_url

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueuedSend:
    """A message waiting for delivery, with its caller-visible future."""

    message: WebhookMessage
    future: asyncio.Future[Response]
    delivery_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: float = field(default_factory=time.time)
    attempts: int = 0
    body: RequestBody | None = None


class SendQueue:
    """Strictly ordered delivery of messages to one destination.

    A single worker task processes the queue head-first. Retryable failures
    (429, 5xx, transport errors) keep the message at the head, so futures
    always complete in enqueue order.
    """

    def __init__(
        self,
        transport: Transport,
        url: str,
        tracker: RateLimitTracker,
        *,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        max_backoff_seconds: float = 15.0,
        headers: Mapping[str, str] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the queue.

        Args:
            transport: Transport that executes encoded requests
            url: Full request URL including the ``wait`` query parameter
            tracker: Rate limit tracker for the destination
            max_retries: Retries after the first attempt before giving up
            backoff_factor: Base of the exponential backoff for transient errors
            max_backoff_seconds: Upper bound for a single backoff delay
            headers: Extra headers sent with every request
            sleep: Coroutine used for backoff delays
        """
        if max_retries < 0:
            msg = "max_retries must not be negative"
            raise ValueError(msg)
        if max_backoff_seconds <= 0:
            msg = "max_backoff_seconds must be positive"
            raise ValueError(msg)
        self.transport: Transport = transport
        self.url: str = url
        self.tracker: RateLimitTracker = tracker
        self.max_retries: int = max_retries
        self.backoff_factor: float = backoff_factor
        self.max_backoff_seconds: float = max_backoff_seconds
        self.headers: dict[str, str] = dict(headers or {})
        self._sleep: Sleep = sleep
        self._pending: deque[QueuedSend] = deque()
        self._wakeup: asyncio.Event = asyncio.Event()
        self._worker: asyncio.Task[None] | None = None
        self._closed: bool = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def enqueue(self, message: WebhookMessage) -> asyncio.Future[Response]:
        """Queue a message for delivery.

        Must be called from the event loop that owns the queue.

        Returns:
            Future resolved with the endpoint's response, or failed with a
            ``WebhookError`` subclass

        Raises:
            SendCancelledError: If the queue has been shut down
        """
        if self._closed:
            msg = "Send queue is shut down"
            raise SendCancelledError(msg)
        loop = asyncio.get_running_loop()
        item = QueuedSend(message=message, future=loop.create_future())
        self._pending.append(item)
        logger.debug("Enqueued delivery %s (%d pending)", item.delivery_id, len(self._pending))
        if self._worker is None:
            self._worker = loop.create_task(self._run(), name=f"webhook-send-{self.tracker.name}")
        self._wakeup.set()
        return item.future

    async def shutdown(self, wait_for_pending: bool = True) -> None:
        """Stop accepting messages and stop the worker.

        Every future still pending when the worker stops fails with
        ``SendCancelledError``, including when the caller is itself
        cancelled while waiting for the queue to drain.

        Args:
            wait_for_pending: Deliver every queued message first when True;
                otherwise fail them all with ``SendCancelledError``
        """
        self._closed = True
        if not wait_for_pending:
            self._cancel_pending()
            if self._worker is not None:
                _ = self._worker.cancel()

        self._wakeup.set()
        worker = self._worker
        if worker is None:
            return
        try:
            await worker
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        finally:
            if not worker.done():
                _ = worker.cancel()
            self._worker = None
            self._cancel_pending()

    def _cancel_pending(self) -> None:
        cancelled = 0
        while self._pending:
            item = self._pending.popleft()
            if not item.future.done():
                item.future.set_exception(SendCancelledError("Send cancelled by shutdown"))
                cancelled += 1
        if cancelled:
            logger.info("Cancelled %d pending deliveries", cancelled)

    async def _run(self) -> None:
        """Worker loop: process the head of the queue until shut down."""
        logger.debug("Send worker for %s started", self.tracker.name)
        try:
            while True:
                if not self._pending:
                    if self._closed:
                        break
                    self._wakeup.clear()
                    _ = await self._wakeup.wait()
                    continue

                item = self._pending[0]
                if item.future.done():
                    # Cancelled by the caller before it was sent.
                    _ = self._pending.popleft()
                    continue

                with delivery_id_context(item.delivery_id):
                    try:
                        finished = await self._attempt(item)
                    except Exception as exc:
                        logger.exception("Unexpected failure while delivering message")
                        self._fail(item, exc)
                        finished = True

                if finished and self._pending and self._pending[0] is item:
                    _ = self._pending.popleft()
        finally:
            logger.debug("Send worker for %s stopped", self.tracker.name)

    async def _attempt(self, item: QueuedSend) -> bool:
        """Make one delivery attempt.

        Returns:
            True when the item's future has been resolved, False when the
            item should be retried
        """
        if item.body is None:
            item.body = encode_message(item.message)
        request = WebhookRequest(
            method="POST",
            url=self.url,
            headers={**self.headers, "Content-Type": item.body.content_type},
            body=item.body.data,
        )

        await self.tracker.acquire()
        item.attempts += 1
        logger.debug("Sending to %s (attempt %d)", sanitize_url(self.url), item.attempts)

        try:
            response = await self.transport.execute(request)
        except TransportError as exc:
            logger.warning("Transport error on attempt %d: %s", item.attempts, sanitize_exception(exc))
            if item.attempts > self.max_retries:
                self._fail(
                    item,
                    TransportFailureError(
                        f"Delivery failed after {item.attempts} attempts: {sanitize_exception(exc)}",
                        attempts=item.attempts,
                    ),
                    cause=exc,
                )
                return True
            await self._backoff(item.attempts)
            return False

        retry_after = self.tracker.update(response)

        if response.ok:
            logger.debug("Delivered (status=%d, attempt=%d)", response.status, item.attempts)
            if not item.future.done():
                item.future.set_result(response)
            return True

        if response.status == 429:
            if item.attempts > self.max_retries:
                self._fail(
                    item,
                    RateLimitExhaustedError(
                        f"Still rate limited after {item.attempts} attempts",
                        retry_after=retry_after,
                        attempts=item.attempts,
                    ),
                )
                return True
            # The tracker gate holds the retry back until the limit resets.
            return False

        if response.status >= 500:
            logger.warning("Server error %d on attempt %d", response.status, item.attempts)
            if item.attempts > self.max_retries:
                self._fail(
                    item,
                    TransportFailureError(
                        f"Server error {response.status} after {item.attempts} attempts",
                        status=response.status,
                        attempts=item.attempts,
                    ),
                )
                return True
            await self._backoff(item.attempts)
            return False

        error = RequestRejectedError.from_response_body(response.status, response.body)
        logger.error("Request rejected (status=%d): %s", response.status, error.message)
        self._fail(item, error)
        return True

    async def _backoff(self, attempt: int) -> None:
        """Sleep using exponential backoff constrained by the configured maximum."""
        delay = min(self.backoff_factor ** (attempt - 1), self.max_backoff_seconds)
        logger.debug("Retrying in %.2fs", delay)
        await self._sleep(delay)

    def _fail(self, item: QueuedSend, error: BaseException, cause: BaseException | None = None) -> None:
        if cause is not None:
            error.__cause__ = cause
        if not item.future.done():
            item.future.set_exception(error)
