"""Webhook client facade binding one destination to a send queue."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import re
import time
from importlib.metadata import PackageNotFoundError, version
from typing import Final, Self, override

from webhook_dispatch.config.models import ClientConfig
from webhook_dispatch.dispatch.queue import SendQueue
from webhook_dispatch.dispatch.rate_limit import Clock, GlobalRateLimit, RateLimitTracker, Sleep
from webhook_dispatch.send.attachment import FileInput
from webhook_dispatch.send.builder import WebhookMessageBuilder
from webhook_dispatch.send.embed import Embed
from webhook_dispatch.send.message import WebhookMessage
from webhook_dispatch.types.models import Response
from webhook_dispatch.types.protocols import Transport

__all__ = ["WebhookClient"]

DEFAULT_BASE_URL: Final[str] = "https://discordapp.com/api"
DEFAULT_API_VERSION: Final[str] = "v7"

_WEBHOOK_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<base>https?://[^/]+/api)(?:/(?P<version>v\d+))?/webhooks/(?P<id>\d+)/(?P<token>[^/?#]+)/?(?:[?#].*)?$",
)

try:
    _PACKAGE_VERSION = version("webhook-dispatch")
except PackageNotFoundError:
    _PACKAGE_VERSION = "0.0.0"

USER_AGENT: Final[str] = f"webhook-dispatch/{_PACKAGE_VERSION}"

type Sendable = str | WebhookMessage | Embed


class WebhookClient:
    """Sends messages to one webhook destination.

    All sends go through a single ordered queue, so messages arrive in the
    order ``send`` was called. With ``wait_for_completion`` (the default)
    ``send`` returns the endpoint's response; otherwise it returns the
    pending future immediately.

    Example:
        >>> async with AiohttpTransport() as transport:
        ...     async with WebhookClient(1234, "token", transport) as client:
        ...         await client.send("Hello World")
    """

    def __init__(
        self,
        webhook_id: int | str,
        token: str,
        transport: Transport,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        wait: bool = False,
        wait_for_completion: bool = True,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        max_backoff_seconds: float = 15.0,
        rate_limit_padding: float = 0.0,
        global_limit: GlobalRateLimit | None = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            webhook_id: Numeric webhook id
            token: Webhook token; never logged
            transport: Transport shared by every request of this client
            base_url: Scheme, host and ``/api`` prefix
            api_version: API version path segment, e.g. ``v7``
            wait: Ask the endpoint to return the created message
            wait_for_completion: Make ``send`` await delivery
            max_retries: Retries after the first attempt
            backoff_factor: Base of the exponential backoff
            max_backoff_seconds: Upper bound for a single backoff delay
            rate_limit_padding: Seconds added to server-provided waits
            global_limit: Global limit shared with other clients; private when omitted
            clock: Wall-clock source used for rate limit bookkeeping
            sleep: Coroutine used for all waits
        """
        webhook_id = str(webhook_id)
        if not webhook_id.isdigit():
            msg = "webhook_id must be numeric"
            raise ValueError(msg)
        if not token:
            msg = "token must not be empty"
            raise ValueError(msg)

        self.webhook_id: str = webhook_id
        self.wait: bool = wait
        self.wait_for_completion: bool = wait_for_completion
        self.transport: Transport = transport
        self._token: str = token
        self._base_url: str = base_url.rstrip("/")
        self._api_version: str = api_version
        self._logger: logging.Logger = logging.getLogger(__name__)
        self._loop: asyncio.AbstractEventLoop | None = None

        self.tracker: RateLimitTracker = RateLimitTracker(
            webhook_id,
            global_limit,
            clock=clock,
            sleep=sleep,
            padding=rate_limit_padding,
        )
        self.queue: SendQueue = SendQueue(
            transport,
            self.url,
            self.tracker,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
            max_backoff_seconds=max_backoff_seconds,
            headers={"User-Agent": USER_AGENT},
            sleep=sleep,
        )

    @classmethod
    def from_url(cls, url: str, transport: Transport, **kwargs: object) -> WebhookClient:
        """Create a client from a full webhook URL.

        Accepts ``https://<host>/api[/<version>]/webhooks/<id>/<token>``.

        Raises:
            ValueError: If the URL does not have that shape
        """
        match = _WEBHOOK_URL_PATTERN.match(url.strip())
        if match is None:
            msg = "Webhook URL must include /api/webhooks/<id>/<token>"
            raise ValueError(msg)
        options: dict[str, object] = {"base_url": match["base"]}
        if match["version"]:
            options["api_version"] = match["version"]
        options.update(kwargs)
        return cls(match["id"], match["token"], transport, **options)  # pyright: ignore[reportArgumentType]

    @classmethod
    def from_config(
        cls,
        webhook_id: int | str,
        token: str,
        transport: Transport,
        config: ClientConfig,
        *,
        global_limit: GlobalRateLimit | None = None,
    ) -> WebhookClient:
        """Create a client from a validated ``ClientConfig``."""
        return cls(
            webhook_id,
            token,
            transport,
            base_url=config.base_url,
            api_version=config.api_version,
            wait=config.wait,
            wait_for_completion=config.wait_for_completion,
            max_retries=config.retry.max_retries,
            backoff_factor=config.retry.backoff_factor,
            max_backoff_seconds=config.retry.max_backoff_seconds,
            rate_limit_padding=config.retry.rate_limit_padding,
            global_limit=global_limit,
        )

    @property
    def url(self) -> str:
        """Request URL, including the token. Do not log it unsanitized."""
        wait = "true" if self.wait else "false"
        return f"{self._base_url}/{self._api_version}/webhooks/{self.webhook_id}/{self._token}?wait={wait}"

    @property
    def is_shutdown(self) -> bool:
        return self.queue.is_shutdown

    async def send(self, message: Sendable, *embeds: Embed) -> Response | asyncio.Future[Response]:
        """Send text, embeds or a prepared message.

        Args:
            message: Text content, a ``WebhookMessage``, or the first embed
            *embeds: Further embeds, only valid when ``message`` is an embed

        Returns:
            The response when ``wait_for_completion`` is set, otherwise the
            pending future

        Raises:
            MessageValidationError: If the message cannot be built
            SendCancelledError: If the client has been closed
        """
        future = self._enqueue(self._coerce(message, embeds))
        if self.wait_for_completion:
            return await future
        return future

    async def send_file(self, source: FileInput, name: str | None = None) -> Response | asyncio.Future[Response]:
        """Send a single file from a path, a binary stream, or bytes."""
        return await self.send(WebhookMessageBuilder().add_file(source, name).build())

    def send_threadsafe(self, message: Sendable) -> concurrent.futures.Future[Response]:
        """Schedule a send from a thread other than the client's event loop.

        The client must have been used (or entered) on its loop first.

        Returns:
            A ``concurrent.futures.Future`` resolved with the response
        """
        if self._loop is None:
            msg = "Client is not bound to an event loop yet; send once or use 'async with' first"
            raise RuntimeError(msg)
        built = self._coerce(message, ())
        return asyncio.run_coroutine_threadsafe(self._deliver(built), self._loop)

    async def close(self, wait_for_pending: bool = True) -> None:
        """Shut the send queue down.

        Args:
            wait_for_pending: Deliver queued messages first when True,
                otherwise cancel them
        """
        self._logger.debug("Closing webhook client %s (wait_for_pending=%s)", self.webhook_id, wait_for_pending)
        await self.queue.shutdown(wait_for_pending)

    async def __aenter__(self) -> Self:
        self._loop = asyncio.get_running_loop()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close(wait_for_pending=exc_type is None)

    async def _deliver(self, message: WebhookMessage) -> Response:
        return await self._enqueue(message)

    def _enqueue(self, message: WebhookMessage) -> asyncio.Future[Response]:
        self._loop = asyncio.get_running_loop()
        return self.queue.enqueue(message)

    def _coerce(self, message: Sendable, embeds: tuple[Embed, ...]) -> WebhookMessage:
        if isinstance(message, Embed):
            return WebhookMessage.from_embeds(message, *embeds)
        if embeds:
            msg = "Extra embeds are only accepted when the first argument is an embed"
            raise TypeError(msg)
        if isinstance(message, WebhookMessage):
            return message
        return WebhookMessageBuilder().set_content(message).build()

    @override
    def __repr__(self) -> str:
        return f"WebhookClient(webhook_id={self.webhook_id!r}, wait={self.wait})"
