"""Shared minimum-interval throttle for outbound indexer requests."""

import asyncio
import time
from collections.abc import Awaitable, Callable


class RateLimiter:
    """
    Enforces a minimum interval between consecutive requests.

    One instance is shared by every caller of a client, so concurrent
    discovery streams and detail batches are all serialized behind it.

    Parameters
    ----------
    min_interval : float
        Minimum seconds between two request starts
    clock : Callable[[], float]
        Monotonic clock, injectable for tests
    sleep : Callable[[float], Awaitable[None]]
        Async sleep, injectable for tests

    """

    def __init__(
        self,
        min_interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> float | None:
        """Clock reading of the most recent acquire, if any."""
        return self._last_call

    async def acquire(self) -> None:
        """Wait until a request may start and record its start time."""
        async with self._lock:
            if self._last_call is not None:
                wait = self.min_interval - (self._clock() - self._last_call)
                if wait > 0:
                    await self._sleep(wait)
            self._last_call = self._clock()
