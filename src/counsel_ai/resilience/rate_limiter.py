"""Fixed-rate limiter for a rate-limited external API.

Single-process approximation: enforces a minimum interval between
permitted calls on one limiter instance. Instances sharing a provider
quota across processes are not coordinated.
"""
from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()


class RateLimiter:
    """Spaces successive ``wait()`` completions by ``60000 / calls_per_minute`` ms.

    Waiters are served in arrival order; each holds the limiter while it
    sleeps so concurrent callers sharing the instance stay spaced too.
    """

    def __init__(
        self,
        calls_per_minute: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if calls_per_minute <= 0:
            raise ValueError("calls_per_minute must be positive")
        self.calls_per_minute = calls_per_minute
        self.min_interval_ms = 60_000 / calls_per_minute
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> float | None:
        return self._last_call

    async def wait(self) -> None:
        """Suspend until the next call is permitted."""
        async with self._lock:
            if self._last_call is not None:
                elapsed_ms = (self._clock() - self._last_call) * 1000
                if elapsed_ms < self.min_interval_ms:
                    wait_ms = self.min_interval_ms - elapsed_ms
                    logger.debug("rate_limiter_wait", wait_ms=round(wait_ms))
                    await self._sleep(wait_ms / 1000)
            self._last_call = self._clock()
