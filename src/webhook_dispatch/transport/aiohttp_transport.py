"""aiohttp-backed transport.

The session is created once, in ``__aenter__``, and shared by every request
the owning client sends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Self

import aiohttp

from webhook_dispatch.config.models import ClientConfig
from webhook_dispatch.errors import TransportError
from webhook_dispatch.types.models import Response, WebhookRequest
from webhook_dispatch.utils.sanitization import sanitize_url


class AiohttpTransport:
    """Async transport implementing the ``Transport`` protocol with aiohttp.

    Example:
        >>> async with AiohttpTransport() as transport:
        ...     client = WebhookClient(1234, "token", transport)
        ...     await client.send("Hello World")
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout_seconds: Total timeout per request in seconds
            session: Externally managed session; not closed by this transport
        """
        if timeout_seconds <= 0:
            msg = "timeout_seconds must be positive"
            raise ValueError(msg)
        self._timeout_seconds: float = timeout_seconds
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None
        self._logger: logging.Logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ClientConfig) -> Self:
        """Create a transport using the configured request timeout."""
        return cls(timeout_seconds=config.request_timeout)

    async def __aenter__(self) -> Self:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
            )
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def execute(self, request: WebhookRequest) -> Response:
        """Send a request and decode the response.

        Raises:
            TransportError: On timeouts and connection-level failures
            RuntimeError: If used outside ``async with``
        """
        if self._session is None:
            msg = "Transport session not initialized. Use 'async with' context manager."
            raise RuntimeError(msg)

        safe_url = sanitize_url(request.url)
        self._logger.debug("Executing %s %s (%d bytes)", request.method, safe_url, len(request.body))

        try:
            async with asyncio.timeout(self._timeout_seconds):
                async with self._session.request(
                    request.method,
                    request.url,
                    data=request.body,
                    headers=dict(request.headers),
                ) as response:
                    body = await self._read_body(response)
                    return Response(
                        status=response.status,
                        body=body,
                        headers=dict(response.headers),
                    )
        except TimeoutError as exc:
            self._logger.warning("Request to %s timed out after %.1fs", safe_url, self._timeout_seconds)
            raise TransportError(f"Request timed out after {self._timeout_seconds}s", timeout=True) from exc
        except aiohttp.InvalidURL as exc:
            raise ValueError(f"Malformed URL: {safe_url}") from exc
        except aiohttp.ClientError as exc:
            self._logger.warning("Client error for %s: %s", safe_url, type(exc).__name__)
            raise TransportError(f"Network error: {type(exc).__name__}") from exc

    async def _read_body(self, response: aiohttp.ClientResponse) -> Mapping[str, object]:
        """Parse a JSON object body, falling back to an empty mapping."""
        if response.status == 204:
            return {}
        try:
            body = await response.json(content_type=None)  # pyright: ignore[reportAny]  # aiohttp returns Any
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
