from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]

WINDOW_SEC = 60.0


def linear_offsets(count: int, quota_per_minute: int) -> list[float]:
    """Dispatch offsets spacing ``count`` calls evenly under a per-minute quota."""
    if quota_per_minute <= 0:
        raise ValueError("quota_per_minute must be > 0")
    spacing = WINDOW_SEC / quota_per_minute
    return [i * spacing for i in range(max(count, 0))]


class LinearPacer:
    """offset(i) = i * (60 / quota); no shared state between waits."""

    def __init__(self, quota_per_minute: int, sleep: Sleep | None = None) -> None:
        if quota_per_minute <= 0:
            raise ValueError("quota_per_minute must be > 0")
        self.quota_per_minute = quota_per_minute
        self.sleep = sleep or asyncio.sleep

    def offsets(self, count: int) -> list[float]:
        return linear_offsets(count, self.quota_per_minute)

    async def wait(self, index: int) -> None:
        delay = index * (WINDOW_SEC / self.quota_per_minute)
        if delay > 0:
            await self.sleep(delay)


class TokenBucketPacer:
    """Admission by token bucket refilling at quota/60 tokens per second.

    The bucket outlives a single batch, so overlapping summary requests
    share one budget. ``burst`` is the bucket capacity; with the default of
    1 a fresh bucket admits calls at the same 60/quota spacing as
    ``LinearPacer``.
    """

    def __init__(
        self,
        quota_per_minute: int,
        burst: int = 1,
        clock: Callable[[], float] | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        if quota_per_minute <= 0:
            raise ValueError("quota_per_minute must be > 0")
        if burst < 1:
            raise ValueError("burst must be >= 1")
        self.quota_per_minute = quota_per_minute
        self.capacity = float(burst)
        self.rate = quota_per_minute / WINDOW_SEC
        self.clock = clock or time.monotonic
        self.sleep = sleep or asyncio.sleep
        self._tokens = float(burst)
        self._updated_at = self.clock()

    def offsets(self, count: int) -> list[float]:
        return linear_offsets(count, self.quota_per_minute)

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(now - self._updated_at, 0.0)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated_at = now

    def reserve(self) -> float:
        """Take the next token, going into debt if needed; return seconds until it is due.

        Each call queues behind every earlier reservation, so callers are
        admitted in the order they reserved.
        """
        self._refill()
        self._tokens -= 1.0
        # tolerance keeps float refill error from producing near-zero sleeps
        if self._tokens >= -1e-9:
            return 0.0
        return -self._tokens / self.rate

    async def wait(self, index: int) -> None:
        # reserve has no await inside, so tasks on one loop need no lock
        delay = self.reserve()
        if delay > 0:
            await self.sleep(delay)


def build_pacer(policy: str, quota_per_minute: int, sleep: Sleep | None = None):
    if policy == "token_bucket":
        return TokenBucketPacer(quota_per_minute, sleep=sleep)
    if policy == "linear":
        return LinearPacer(quota_per_minute, sleep=sleep)
    raise ValueError(f"unknown pacing policy: {policy}")
