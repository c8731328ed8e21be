"""Response caching."""

from dotdotdot.cache.response_cache import (
    CacheConfig,
    CacheEntry,
    CacheStats,
    ResponseCache,
    fingerprint,
)

__all__ = ["CacheConfig", "CacheEntry", "CacheStats", "ResponseCache", "fingerprint"]
