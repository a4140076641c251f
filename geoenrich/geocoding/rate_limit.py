"""
Minimum-interval throttling for outbound geocoding calls.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between the starts of successive lookups.

    Call `await limiter.throttle()` immediately before each external request.
    The first call returns at once; later calls sleep for whatever is left of
    `min_interval` since the previous call returned.

    Usage:
        limiter = RateLimiter(min_interval=0.2)
        await limiter.throttle()
        result = await geocoder.lookup(address)
    """

    def __init__(
        self,
        min_interval: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")

        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_start: Optional[float] = None

    async def throttle(self) -> None:
        if self._last_start is not None:
            wait = self.min_interval - (self._clock() - self._last_start)
            if wait > 0:
                logger.debug(f"Rate limit: waiting {wait:.3f}s")
                await self._sleep(wait)

        self._last_start = self._clock()

    def reset(self) -> None:
        """Forget the previous call so the next throttle() does not wait."""
        self._last_start = None


class NoopRateLimiter(RateLimiter):
    """Rate limiter that never waits."""

    def __init__(self):
        super().__init__(min_interval=0.0)

    async def throttle(self) -> None:
        return None
