"""Rate limit tracking driven by the endpoint's response headers."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from webhook_dispatch.types.models import Response

logger = logging.getLogger(__name__)

type Clock = Callable[[], float]
type Sleep = Callable[[float], Awaitable[None]]

REMAINING_HEADER: Final[str] = "X-RateLimit-Remaining"
RESET_HEADER: Final[str] = "X-RateLimit-Reset"
RESET_AFTER_HEADER: Final[str] = "X-RateLimit-Reset-After"
GLOBAL_HEADER: Final[str] = "X-RateLimit-Global"
RETRY_AFTER_HEADER: Final[str] = "Retry-After"

_DEFAULT_RETRY_AFTER: Final[float] = 1.0


class RateLimitState(Enum):
    """Whether a destination may issue a request right now."""

    OPEN = "open"
    LIMITED = "limited"
    GLOBAL_LIMITED = "global_limited"


@dataclass(slots=True)
class GlobalRateLimit:
    """Global limit shared by every tracker holding this instance.

    Pass one instance to each client that shares a transport; trackers read it
    before every request and the first global 429 extends it for all of them.
    """

    clock: Clock = time.time
    _limited_until: float = field(default=0.0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def limited_until(self) -> float:
        with self._lock:
            return self._limited_until

    def is_limited(self) -> bool:
        return self.limited_until > self.clock()

    def limit_for(self, seconds: float) -> None:
        """Block all sharing destinations for ``seconds`` from now."""
        until = self.clock() + max(seconds, 0.0)
        with self._lock:
            self._limited_until = max(self._limited_until, until)


class RateLimitTracker:
    """Per-destination rate limit state machine.

    Moves to ``LIMITED`` when the endpoint reports an exhausted quota or
    answers 429, and back to ``OPEN`` once the reset time has passed. The
    shared ``GlobalRateLimit`` overlays ``GLOBAL_LIMITED`` on top.
    """

    def __init__(
        self,
        name: str,
        global_limit: GlobalRateLimit | None = None,
        *,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
        padding: float = 0.0,
    ) -> None:
        """Initialize the tracker.

        Args:
            name: Destination label used in log messages (never the token)
            global_limit: Shared global overlay; a private one is created when omitted
            clock: Wall-clock source in epoch seconds
            sleep: Coroutine used to wait for a reset
            padding: Extra seconds added to every server-provided wait
        """
        self.name: str = name
        self.global_limit: GlobalRateLimit = global_limit or GlobalRateLimit(clock=clock)
        self.padding: float = padding
        self._clock: Clock = clock
        self._sleep: Sleep = sleep
        self.remaining: int | None = None
        self.reset_at: float = 0.0

    @property
    def state(self) -> RateLimitState:
        if self.global_limit.is_limited():
            return RateLimitState.GLOBAL_LIMITED
        if self.remaining == 0 and self.reset_at > self._clock():
            return RateLimitState.LIMITED
        return RateLimitState.OPEN

    def delay(self) -> float:
        """Seconds until a request may be issued (0 when open)."""
        now = self._clock()
        wait = self.global_limit.limited_until - now
        if self.remaining == 0:
            wait = max(wait, self.reset_at - now)
        return max(wait, 0.0)

    async def acquire(self) -> None:
        """Suspend until neither the destination nor the global limit applies."""
        while True:
            wait = self.delay()
            if wait <= 0:
                break
            logger.info(
                "Destination %s is %s, waiting %.2fs",
                self.name,
                self.state.value,
                wait,
            )
            await self._sleep(wait)
        if self.remaining == 0:
            # The window has reset; the next response reports the new quota.
            self.remaining = None

    def update(self, response: Response) -> float | None:
        """Record quota information from a response.

        Args:
            response: Response to a request sent to this destination

        Returns:
            The retry-after delay in seconds for 429 responses, else None
        """
        if response.status == 429:
            return self._record_rate_limited(response)

        remaining = _parse_int(response.header(REMAINING_HEADER))
        if remaining is not None:
            self.remaining = remaining
        reset_after = _parse_float(response.header(RESET_AFTER_HEADER))
        reset_epoch = _parse_float(response.header(RESET_HEADER))
        if reset_after is not None:
            self.reset_at = self._clock() + reset_after + self.padding
        elif reset_epoch is not None:
            self.reset_at = reset_epoch + self.padding

        if self.remaining == 0:
            logger.debug(
                "Destination %s exhausted its quota, resets in %.2fs",
                self.name,
                max(self.reset_at - self._clock(), 0.0),
            )
        return None

    def _record_rate_limited(self, response: Response) -> float:
        body = response.body
        retry_after = _parse_float(body.get("retry_after"))
        if retry_after is None:
            retry_after = _parse_float(response.header(RETRY_AFTER_HEADER))
        if retry_after is None:
            retry_after = _DEFAULT_RETRY_AFTER
        retry_after += self.padding

        is_global = bool(body.get("global", False)) or (
            (response.header(GLOBAL_HEADER) or "").lower() == "true"
        )
        if is_global:
            self.global_limit.limit_for(retry_after)
        else:
            self.remaining = 0
            self.reset_at = self._clock() + retry_after

        logger.warning(
            "Destination %s rate limited (global=%s, retry_after=%.2fs)",
            self.name,
            is_global,
            retry_after,
        )
        return retry_after


def _parse_float(value: object) -> float | None:
    """Convert header or body values to float when feasible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            logger.debug("Ignoring rate limit value with unexpected format: %s", value)
    return None


def _parse_int(value: str | None) -> int | None:
    parsed = _parse_float(value)
    return None if parsed is None else int(parsed)
