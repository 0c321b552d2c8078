"""Async token bucket shared by every caller of one provider."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


class TokenBucket:
    """Async token bucket that paces requests to a steady per-second rate.

    Up to `burst` requests fire immediately, after which callers are paced
    at `rate` per second. The lock is created lazily so the bucket binds to
    whichever event loop first uses it.
    """

    def __init__(
        self,
        rate: float,
        burst: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize token bucket.

        Args:
            rate: Tokens refilled per second.
            burst: Maximum number of tokens held at once.
            clock: Monotonic clock, injectable for tests.
            sleep: Async sleep, injectable for tests.
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._last_refill = clock()
        self._lock: Optional[asyncio.Lock] = None

    @property
    def available(self) -> float:
        """Tokens currently available (after refill)."""
        self._refill()
        return self._tokens

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        self._tokens = min(self.burst, self._tokens + elapsed * self.rate)
        self._last_refill = now

    async def acquire(self) -> float:
        """Wait until a token is available, then consume it.

        Returns:
            Total seconds spent waiting.
        """
        waited = 0.0
        while True:
            async with self._get_lock():
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    if waited:
                        logger.debug("rate_limiter_waited", seconds=round(waited, 3))
                    return waited
                wait = (1.0 - self._tokens) / self.rate

            # Sleep outside the lock so other waiters can refill and check
            await self._sleep(wait)
            waited += wait
