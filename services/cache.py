"""Short-lived cache for leaderboard and progress reads."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from cachetools import TTLCache


class StatsCache:
    """TTL cache with per-key load locks.

    Concurrent misses on the same key share a single loader call. Every log
    write calls :meth:`invalidate`, so the TTL only bounds staleness from
    writes made by other processes.
    """

    def __init__(self, ttl: int = 30, maxsize: int = 256) -> None:
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        return self._cache.get(key)

    def set(self, key: Hashable, value: Any) -> None:
        self._cache[key] = value

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        value = self._cache.get(key)
        if value is not None:
            return value

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            value = self._cache.get(key)
            if value is None:
                value = await loader()
                self._cache[key] = value
        return value

    def invalidate(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
