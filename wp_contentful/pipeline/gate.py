"""Fixed pacing delay awaited before every outbound Contentful call."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable


class RateGate:
    """
    Simple pacing gate.  Every ``await gate()`` suspends the caller for
    ``delay`` seconds, unconditionally.  This is not a token bucket: the
    aggregate request rate is bounded by ``concurrency / delay`` when the
    gate is combined with the worker pool's concurrency limit (8 workers
    and a 1s delay keep the CMA under its 10 requests/second quota).
    """

    def __init__(self, delay: float = 1.0, sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep) -> None:
        self.delay = max(0.0, float(delay))
        self._sleep = sleep_fn
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1
        await self._sleep(self.delay)
