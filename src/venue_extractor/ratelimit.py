"""Rate limiter interface and an in-process sliding-window implementation."""

from __future__ import annotations

import asyncio
import math
import time
from collections import deque
from typing import Protocol

import structlog

from venue_extractor.exceptions import RateLimitExceededError

logger = structlog.get_logger()


class RateLimiter(Protocol):
    """Raises ``RateLimitExceededError`` when ``key`` is over its limit."""

    async def check_limit(self, key: str) -> None: ...


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    Not shared across processes.
    """

    def __init__(self, max_requests: int, window_seconds: float) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    async def check_limit(self, key: str) -> None:
        """Record a request for ``key`` or reject it.

        Raises:
            RateLimitExceededError: If the window is already full.
        """
        async with self._lock:
            now = time.monotonic()
            window = self._windows.setdefault(key, deque())
            while window and window[0] <= now - self.window_seconds:
                window.popleft()

            if len(window) >= self.max_requests:
                retry_after = max(1, math.ceil(window[0] + self.window_seconds - now))
                logger.warning(
                    "rate_limit_exceeded",
                    key=key,
                    limit=self.max_requests,
                    window_seconds=self.window_seconds,
                    retry_after=retry_after,
                )
                raise RateLimitExceededError(
                    f"Rate limit exceeded for {key}: {self.max_requests} requests "
                    f"per {self.window_seconds:g}s",
                    retry_after_seconds=retry_after,
                )

            window.append(now)
