"""Cache package for the expiring result store boundary."""

from .interfaces import CACHE_MISS, CacheLookup, CacheStorePort, CacheUnavailableError
from .memory import InMemoryTTLCacheStore

__all__ = [
	"CACHE_MISS",
	"CacheLookup",
	"CacheStorePort",
	"CacheUnavailableError",
	"InMemoryTTLCacheStore",
]
