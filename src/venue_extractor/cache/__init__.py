"""Result cache interface and an in-process TTL implementation.

Any object with async ``get``/``set`` methods can be injected into the
extraction service; ``InMemoryCache`` covers single-process deployments.
"""

from __future__ import annotations

import asyncio
import copy
import time
from collections import OrderedDict
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class CacheService(Protocol):
    """Key-value store with per-entry TTL.

    Values handed out must be copies (or immutable), never shared references.
    TTL is best-effort.
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...


class InMemoryCache:
    """Bounded in-memory cache with per-entry expiry.

    Expired entries are dropped lazily on read and eagerly when the cache
    is full; after that the oldest entry is evicted.
    """

    def __init__(self, max_entries: int = 1024) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            expires_at, value = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        async with self._lock:
            now = time.monotonic()
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_entries:
                self._evict(now)
            self._entries[key] = (now + ttl_seconds, copy.deepcopy(value))

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]

        while len(self._entries) >= self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache_entry_evicted", key=evicted[:64])


__all__ = ["CacheService", "InMemoryCache"]
