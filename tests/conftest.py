"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tests.fixtures.clock import FakeClock
from webhook_dispatch.dispatch.rate_limit import GlobalRateLimit, RateLimitTracker
from webhook_dispatch.types.models import Response


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> RateLimitTracker:
    """Create a tracker driven by the fake clock."""
    return RateLimitTracker("1234", GlobalRateLimit(clock=clock), clock=clock, sleep=clock.sleep)


@pytest.fixture
def mock_transport() -> AsyncMock:
    """Create a transport mock answering every request with 204."""
    transport = AsyncMock()
    transport.execute = AsyncMock(return_value=Response(status=204))
    return transport


@pytest.fixture
def sample_files() -> dict[str, bytes]:
    """Contents used for the cat/dog/bird attachment scenario."""
    return {"cat.png": b"\x89PNG cat", "dog.png": b"\x89PNG dog", "bird.png": b"\x89PNG bird"}
