"""Unit tests for rate limit tracking."""

from __future__ import annotations

import pytest

from tests.fixtures.clock import FakeClock
from webhook_dispatch.dispatch.rate_limit import GlobalRateLimit, RateLimitState, RateLimitTracker
from webhook_dispatch.types.models import Response


class TestSuccessHeaders:
    """Test quota bookkeeping from success responses."""

    def test_initially_open(self, tracker: RateLimitTracker) -> None:
        assert tracker.state is RateLimitState.OPEN
        assert tracker.delay() == 0.0

    def test_remaining_above_zero_stays_open(self, tracker: RateLimitTracker) -> None:
        result = tracker.update(
            Response(status=204, headers={"X-RateLimit-Remaining": "4", "X-RateLimit-Reset-After": "2.5"})
        )

        assert result is None
        assert tracker.remaining == 4
        assert tracker.state is RateLimitState.OPEN

    def test_exhausted_quota_limits_until_reset(self, tracker: RateLimitTracker, clock: FakeClock) -> None:
        """Test that remaining=0 blocks until the reset-after interval elapses."""
        _ = tracker.update(
            Response(status=204, headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset-after": "3"})
        )

        assert tracker.state is RateLimitState.LIMITED
        assert tracker.delay() == pytest.approx(3.0)

        clock.advance(3.0)
        assert tracker.state is RateLimitState.OPEN

    def test_reset_epoch_header(self, tracker: RateLimitTracker, clock: FakeClock) -> None:
        """Test the absolute reset header when no relative one is present."""
        _ = tracker.update(
            Response(status=200, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(clock.now + 5)})
        )
        assert tracker.delay() == pytest.approx(5.0)

    def test_padding_added(self, clock: FakeClock) -> None:
        tracker = RateLimitTracker("1", clock=clock, sleep=clock.sleep, padding=0.5)
        _ = tracker.update(Response(status=204, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset-After": "1"}))
        assert tracker.delay() == pytest.approx(1.5)

    def test_malformed_headers_ignored(self, tracker: RateLimitTracker) -> None:
        _ = tracker.update(Response(status=204, headers={"X-RateLimit-Remaining": "n/a"}))
        assert tracker.remaining is None
        assert tracker.state is RateLimitState.OPEN


class TestRateLimitedResponses:
    """Test 429 handling."""

    def test_retry_after_from_body(self, tracker: RateLimitTracker) -> None:
        """Test that the body value wins over the header."""
        retry_after = tracker.update(
            Response(status=429, body={"retry_after": 2}, headers={"Retry-After": "7"})
        )

        assert retry_after == 2.0
        assert tracker.state is RateLimitState.LIMITED
        assert tracker.delay() == pytest.approx(2.0)

    def test_retry_after_from_header(self, tracker: RateLimitTracker) -> None:
        assert tracker.update(Response(status=429, headers={"Retry-After": "1.5"})) == 1.5

    def test_retry_after_default(self, tracker: RateLimitTracker) -> None:
        assert tracker.update(Response(status=429)) == 1.0

    def test_global_limit_from_body(self, tracker: RateLimitTracker) -> None:
        _ = tracker.update(Response(status=429, body={"retry_after": 4, "global": True}))

        assert tracker.state is RateLimitState.GLOBAL_LIMITED
        assert tracker.remaining is None
        assert tracker.delay() == pytest.approx(4.0)

    def test_global_limit_from_header(self, tracker: RateLimitTracker) -> None:
        _ = tracker.update(Response(status=429, headers={"Retry-After": "1", "X-RateLimit-Global": "true"}))
        assert tracker.state is RateLimitState.GLOBAL_LIMITED

    def test_global_limit_shared(self, clock: FakeClock) -> None:
        """Test that a global 429 on one destination blocks every tracker sharing the overlay."""
        shared = GlobalRateLimit(clock=clock)
        first = RateLimitTracker("1", shared, clock=clock, sleep=clock.sleep)
        second = RateLimitTracker("2", shared, clock=clock, sleep=clock.sleep)
        unrelated = RateLimitTracker("3", clock=clock, sleep=clock.sleep)

        _ = first.update(Response(status=429, body={"retry_after": 3, "global": True}))

        assert second.state is RateLimitState.GLOBAL_LIMITED
        assert unrelated.state is RateLimitState.OPEN

    def test_global_limit_never_shrinks(self, clock: FakeClock) -> None:
        shared = GlobalRateLimit(clock=clock)
        shared.limit_for(10)
        shared.limit_for(2)
        assert shared.limited_until == pytest.approx(clock.now + 10)


class TestAcquire:
    """Test the gate used before every request."""

    async def test_open_does_not_sleep(self, tracker: RateLimitTracker, clock: FakeClock) -> None:
        await tracker.acquire()
        assert clock.sleeps == []

    async def test_waits_for_reset(self, tracker: RateLimitTracker, clock: FakeClock) -> None:
        """Test that acquire sleeps until the destination resets."""
        _ = tracker.update(Response(status=429, body={"retry_after": 2}))

        await tracker.acquire()

        assert sum(clock.sleeps) >= 2.0
        assert tracker.state is RateLimitState.OPEN
        assert tracker.remaining is None

    async def test_waits_for_global_and_local(self, tracker: RateLimitTracker, clock: FakeClock) -> None:
        """Test that the longer of both limits applies."""
        tracker.global_limit.limit_for(5)
        _ = tracker.update(Response(status=204, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset-After": "2"}))

        await tracker.acquire()

        assert sum(clock.sleeps) == pytest.approx(5.0)
        assert tracker.state is RateLimitState.OPEN
