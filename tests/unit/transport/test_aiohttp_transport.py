"""Unit tests for the aiohttp transport.

Tests cover:
- Session lifecycle in the async context manager
- Request execution and response decoding
- Timeout and network error mapping
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import aiohttp
import pytest

from webhook_dispatch.config.models import ClientConfig
from webhook_dispatch.errors import TransportError
from webhook_dispatch.transport.aiohttp_transport import AiohttpTransport
from webhook_dispatch.types.models import WebhookRequest

REQUEST = WebhookRequest(
    method="POST",
    url="https://discordapp.com/api/v7/webhooks/1234/secret-token?wait=false",
    headers={"Content-Type": "application/json", "User-Agent": "webhook-dispatch/test"},
    body=b'{"content":"Hello World"}',
)


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock aiohttp ClientSession."""
    session = AsyncMock(spec=aiohttp.ClientSession)
    return session


@pytest.fixture
def mock_response() -> AsyncMock:
    """Create mock aiohttp ClientResponse."""
    response = AsyncMock()
    response.status = 200
    response.json = AsyncMock(return_value={"id": "1"})
    response.headers = {"Content-Type": "application/json", "X-RateLimit-Remaining": "4"}
    return response


@pytest.fixture
def transport(mock_session: AsyncMock, mock_response: AsyncMock) -> AiohttpTransport:
    """Create a transport using the mocked session."""
    mock_session.request.return_value.__aenter__.return_value = mock_response  # pyright: ignore[reportAny]  # mock object
    return AiohttpTransport(session=mock_session)


class TestLifecycle:
    """Test session creation and cleanup."""

    async def test_context_manager_creates_and_closes_session(self) -> None:
        transport = AiohttpTransport(timeout_seconds=5.0)

        async with transport:
            assert isinstance(transport._session, aiohttp.ClientSession)  # pyright: ignore[reportPrivateUsage]  # testing internal state

        assert transport._session is None  # pyright: ignore[reportPrivateUsage]  # testing internal state

    async def test_external_session_not_closed(self, mock_session: AsyncMock) -> None:
        async with AiohttpTransport(session=mock_session):
            pass

        mock_session.close.assert_not_awaited()

    async def test_execute_without_session_raises(self) -> None:
        with pytest.raises(RuntimeError, match="session not initialized"):
            _ = await AiohttpTransport().execute(REQUEST)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="timeout_seconds"):
            _ = AiohttpTransport(timeout_seconds=0)

    def test_from_config(self) -> None:
        transport = AiohttpTransport.from_config(ClientConfig(request_timeout=3.5))
        assert transport._timeout_seconds == 3.5  # pyright: ignore[reportPrivateUsage]  # testing internal state


class TestExecute:
    """Test request execution."""

    async def test_request_forwarded(self, transport: AiohttpTransport, mock_session: AsyncMock) -> None:
        """Test that method, url, body and headers reach the session unchanged."""
        response = await transport.execute(REQUEST)

        mock_session.request.assert_called_once_with(  # pyright: ignore[reportAny]  # mock method
            "POST",
            REQUEST.url,
            data=REQUEST.body,
            headers=dict(REQUEST.headers),
        )
        assert response.status == 200
        assert response.body == {"id": "1"}
        assert response.header("x-ratelimit-remaining") == "4"

    async def test_no_content_response(self, transport: AiohttpTransport, mock_response: AsyncMock) -> None:
        mock_response.status = 204

        response = await transport.execute(REQUEST)

        assert response.body == {}
        mock_response.json.assert_not_awaited()

    async def test_non_json_body(self, transport: AiohttpTransport, mock_response: AsyncMock) -> None:
        mock_response.status = 502
        mock_response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)

        response = await transport.execute(REQUEST)

        assert response.status == 502
        assert response.body == {}

    async def test_non_object_json_body(self, transport: AiohttpTransport, mock_response: AsyncMock) -> None:
        mock_response.json.return_value = ["not", "an", "object"]
        assert (await transport.execute(REQUEST)).body == {}


class TestErrors:
    """Test mapping of aiohttp failures."""

    async def test_timeout(self, mock_session: AsyncMock) -> None:
        """Test that slow requests raise a timeout TransportError."""

        async def slow_request(*args: object, **kwargs: object) -> None:  # pyright: ignore[reportUnusedParameter]
            await asyncio.sleep(10)

        mock_session.request.return_value.__aenter__.side_effect = slow_request  # pyright: ignore[reportAny]  # mock object
        transport = AiohttpTransport(timeout_seconds=0.01, session=mock_session)

        with pytest.raises(TransportError) as exc_info:
            _ = await transport.execute(REQUEST)

        assert exc_info.value.timeout is True

    async def test_client_error(self, mock_session: AsyncMock) -> None:
        mock_session.request.return_value.__aenter__.side_effect = aiohttp.ClientConnectionError("reset")  # pyright: ignore[reportAny]
        transport = AiohttpTransport(session=mock_session)

        with pytest.raises(TransportError, match="ClientConnectionError") as exc_info:
            _ = await transport.execute(REQUEST)

        assert exc_info.value.timeout is False
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    async def test_invalid_url(self, mock_session: AsyncMock) -> None:
        """Test that malformed URLs are programming errors, not transient failures."""
        mock_session.request.return_value.__aenter__.side_effect = aiohttp.InvalidURL("bad")  # pyright: ignore[reportAny]
        transport = AiohttpTransport(session=mock_session)

        with pytest.raises(ValueError, match="Malformed URL") as exc_info:
            _ = await transport.execute(REQUEST)

        assert "secret-token" not in str(exc_info.value)
