"""Typed interfaces for the expiring result cache boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from vyral_workers.domain import HealthStatus


class CacheUnavailableError(RuntimeError):
    """Raised when a cache backend cannot serve a read or write."""


@dataclass(frozen=True)
class CacheLookup:
    """Result of one cache read.

    Attributes:
        hit: Whether a live entry exists for the key.
        value: Cached value; only meaningful when `hit` is True.
    """

    hit: bool
    value: Any = None


CACHE_MISS = CacheLookup(hit=False)


class CacheStorePort(Protocol):
    """Port definition for an expiring key/value result cache."""

    def cache_backend_label(self) -> str:
        """Return backend identifier for diagnostics.

        Returns:
            str: Human-readable backend label.

        Raises:
            RuntimeError: Raised when backend metadata is unavailable.
        """

    def cache_get(self, key: str) -> CacheLookup:
        """Read one live entry.

        Args:
            key: Cache key.

        Returns:
            CacheLookup: Hit with value, or `CACHE_MISS` when absent or expired.

        Raises:
            CacheUnavailableError: Raised when the backend cannot be read.
        """

    def cache_put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Write or overwrite one entry with its own expiry.

        Args:
            key: Cache key.
            value: JSON-serializable value.
            ttl_seconds: Entry lifetime in seconds.

        Returns:
            None: Entry is stored as a side effect.

        Raises:
            ValueError: Raised when ttl_seconds is not positive.
            CacheUnavailableError: Raised when the backend cannot be written.
        """

    def cache_check_health(self) -> HealthStatus:
        """Verify the backend is reachable.

        Returns:
            HealthStatus: Backend status payload.

        Raises:
            ConnectionError: Raised when the backend is unreachable.
        """
