"""Thread-safe in-process TTL cache store."""

from __future__ import annotations

import copy
import heapq
import time
from threading import Lock
from typing import Any, Callable

from vyral_workers.domain import HealthStatus
from vyral_workers.observability import logger

from .interfaces import CACHE_MISS, CacheLookup, CacheStorePort


class InMemoryTTLCacheStore(CacheStorePort):
    """Cache store keeping entries in a process-local dict with per-entry expiry.

    Values are deep-copied on write and read so callers never share mutable
    state with the store. Every write first evicts the entries whose expiry has
    passed, so distinct keys never outlive their TTL by more than one write.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        """Initialize an empty store.

        Args:
            clock: Optional monotonic clock returning seconds.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: This initializer does not raise value errors.
        """

        self._entries: dict[str, tuple[Any, float]] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = Lock()
        self._clock = clock or time.monotonic

    def cache_backend_label(self) -> str:
        return "memory"

    def cache_get(self, key: str) -> CacheLookup:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return CACHE_MISS

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.bind(cache_key=key).debug("cache entry expired")
                return CACHE_MISS

            return CacheLookup(hit=True, value=copy.deepcopy(value))

    def cache_put(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        with self._lock:
            now = self._clock()
            evicted_count = self._cache_evict_expired_locked(now)
            if evicted_count:
                logger.bind(evicted=evicted_count).debug("expired cache entries evicted")

            expires_at = now + ttl_seconds
            self._entries[key] = (copy.deepcopy(value), expires_at)
            heapq.heappush(self._expiry_heap, (expires_at, key))

    def cache_check_health(self) -> HealthStatus:
        with self._lock:
            entry_count = len(self._entries)
        return HealthStatus(status="ok", detail=f"in-memory cache holding {entry_count} entries")

    def cache_purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            int: Number of entries removed.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        with self._lock:
            now = self._clock()
            expired_keys = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired_keys:
                del self._entries[key]
            self._expiry_heap = [(expires_at, key) for key, (_, expires_at) in self._entries.items()]
            heapq.heapify(self._expiry_heap)
        return len(expired_keys)

    def _cache_evict_expired_locked(self, now: float) -> int:
        # Heap items left behind by overwrites or read-time expiry are skipped
        # unless they still match the live entry.
        evicted_count = 0
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiry_heap)
            entry = self._entries.get(key)
            if entry is not None and entry[1] == expires_at:
                del self._entries[key]
                evicted_count += 1
        return evicted_count
