# blueprint_coach/llm/rate_limit.py
"""Client-side sliding-window rate limiter."""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Allows at most `max_requests` acquisitions per `window` seconds.

    The relay enforces its own per-IP limit; staying under it locally avoids
    burning retries on 429 responses.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    def delay(self) -> float:
        """Seconds to wait before the next request may be sent (0 if none)."""
        now = self._clock()
        self._evict(now)
        if len(self._timestamps) < self.max_requests:
            return 0.0
        return max(0.0, self.window - (now - self._timestamps[0]))

    async def acquire(self) -> None:
        async with self._lock:
            wait = self.delay()
            if wait > 0:
                logger.info(f"Rate limit reached, waiting {wait:.1f}s")
                await asyncio.sleep(wait)
                self._evict(self._clock())
            self._timestamps.append(self._clock())
