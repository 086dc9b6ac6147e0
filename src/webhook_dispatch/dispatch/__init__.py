"""Send pipeline: rate limit tracking and the ordered send queue."""

from __future__ import annotations

from .queue import QueuedSend, SendQueue
from .rate_limit import GlobalRateLimit, RateLimitState, RateLimitTracker

__all__ = [
    "GlobalRateLimit",
    "QueuedSend",
    "RateLimitState",
    "RateLimitTracker",
    "SendQueue",
]
