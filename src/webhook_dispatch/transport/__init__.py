"""Transport implementations."""

from __future__ import annotations

from .aiohttp_transport import AiohttpTransport
from .dry_run import DryRunTransport

__all__ = ["AiohttpTransport", "DryRunTransport"]
