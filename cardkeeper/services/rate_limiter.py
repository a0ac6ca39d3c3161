"""
Request spacing for the Scryfall API.

Scryfall allows roughly 10 requests per second per client. The limiter
measures the gap from the completion of one request to the dispatch of the
next, so slow downloads space out later calls on their own.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import lru_cache

from cardkeeper.config import settings


class RateLimiter:
    """
    Minimum-interval gate shared by every request to one remote API.

    Callers that share a budget must share the instance. The wait, the
    request and the completion stamp all happen under one lock, so
    concurrent imports in the same process go through it one at a time.

    The lock is held for the whole request, including a bulk download that
    may run for the full download timeout (600 s by default). Any other
    Scryfall call made meanwhile, such as a manifest lookup from the HTTP
    API, waits until that download finishes. Only one request is ever in
    flight per limiter, which keeps spacing measured from completion exact.
    """

    def __init__(
        self,
        min_interval_ms: int = 100,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval_ms / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: float | None = None

    @property
    def last_request_at(self) -> float | None:
        """Clock reading taken when the previous request completed."""
        return self._last_request_at

    def delay_needed(self) -> float:
        """Seconds to wait before the next request may be sent."""
        if self._last_request_at is None:
            return 0.0
        elapsed = self._clock() - self._last_request_at
        return max(0.0, self.min_interval - elapsed)

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """
        Hold the limiter for the duration of one request.

        Usage:
            async with limiter.slot():
                response = await client.get(url)
        """
        async with self._lock:
            delay = self.delay_needed()
            if delay > 0:
                await self._sleep(delay)
            try:
                yield
            finally:
                self._last_request_at = self._clock()


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter for the Scryfall API, built from settings."""
    return RateLimiter(settings.scryfall_rate_limit_ms)
