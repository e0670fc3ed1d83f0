"""In-process rate limiter for outbound explorer calls.

Implements a fixed-interval pacing policy: consecutive grants are spaced at
least ``interval_seconds`` apart. The free Etherscan tier allows roughly four
requests per second, hence the 0.25s default.

Usage pattern:
    from vesting_claims.utils.ratelimiter import FixedIntervalRateLimiter
    limiter = FixedIntervalRateLimiter(0.25)
    await limiter.acquire()   # once, right before each request

Design notes:
 - ``acquire`` is the only acquisition point; callers never sleep themselves.
 - Clock and sleep are injected so tests can drive time deterministically.
 - An asyncio.Lock serialises waiters, so concurrent callers still observe
   the spacing even though the reconciler itself is strictly sequential.
"""
from __future__ import annotations

import time
import asyncio
from typing import Awaitable, Callable


class FixedIntervalRateLimiter:
    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = float(interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._next_allowed: float | None = None
        self._lock = asyncio.Lock()
        self.acquired = 0

    async def acquire(self) -> float:
        """Wait for the next slot. Returns the seconds spent waiting."""
        async with self._lock:
            now = self._clock()
            waited = 0.0
            if self._next_allowed is not None and now < self._next_allowed:
                waited = self._next_allowed - now
                await self._sleep(waited)
                now = self._clock()
            # Anchor on the later of the actual time and the planned slot so a
            # sleep that returns early cannot shorten the next interval.
            slot = now if self._next_allowed is None else max(now, self._next_allowed)
            self._next_allowed = slot + self.interval_seconds
            self.acquired += 1
            return waited

    def reset(self) -> None:
        self._next_allowed = None
        self.acquired = 0


__all__ = ["FixedIntervalRateLimiter"]
