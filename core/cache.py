# core/cache.py
"""
Timestamped cache for dashboard aggregates.

One instance is created at startup and injected where dashboards need it.
It is advisory: the lifecycle operations and the report export never read it.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: datetime
    expires_at: float


@dataclass(frozen=True)
class CacheLookup:
    """Value handed back to callers along with its age."""
    value: Any
    stored_at: datetime
    cached: bool


class TimedCache:
    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds cannot be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._locks: dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def set(self, key: Hashable, value: Any) -> CacheEntry:
        entry = CacheEntry(
            value=value,
            stored_at=datetime.now(timezone.utc),
            expires_at=self._clock() + self.ttl_seconds,
        )
        self._entries[key] = entry
        return entry

    async def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], Awaitable[Any]],
    ) -> CacheLookup:
        """
        Return the fresh entry for ``key`` or compute and store a new one.

        Concurrent misses on the same key share one computation. Misses on
        different keys do not wait for each other. Failures in ``compute``
        propagate and nothing is stored.
        """
        entry = self.get(key)
        if entry is not None:
            return CacheLookup(entry.value, entry.stored_at, cached=True)

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another request may have filled it while we waited
            entry = self.get(key)
            if entry is not None:
                return CacheLookup(entry.value, entry.stored_at, cached=True)
            try:
                value = await compute()
                entry = self.set(key, value)
            finally:
                if self._locks.get(key) is lock:
                    del self._locks[key]
        return CacheLookup(entry.value, entry.stored_at, cached=False)

    def invalidate(self, key: Hashable | None = None) -> int:
        """Drop one key, or everything when ``key`` is None. Returns entries removed."""
        if key is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            removed = 1 if self._entries.pop(key, None) is not None else 0
        logger.info("Dashboard cache invalidated (%d entries)", removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)
