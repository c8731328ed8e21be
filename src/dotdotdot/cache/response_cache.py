"""Bounded response cache keyed by a fingerprint of the cleaned input.

The fingerprint is a 32-bit polynomial rolling hash, not a cryptographic
digest. Two different inputs can collide and one will then be served the
other's bullets. That is a quality problem rather than a safety one (both
inputs were already sanitized), and it is accepted in exchange for a cheap,
fixed-width key.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from dotdotdot.logging import get_logger
from dotdotdot.store.base import KeyValueStore, StoreError

log = get_logger("dotdotdot.cache.response_cache")

# Fraction of max_size evicted when the cache is full.
EVICTION_FRACTION = 0.2


def _now_ms() -> int:
    return int(time.time() * 1000)


def fingerprint(text: str) -> int:
    """Hash ``text`` to a non-negative 32-bit integer (``h = h * 31 + c``).

    ``c`` is each Unicode code point. A character outside the Basic
    Multilingual Plane is one term here, where a UTF-16 code-unit hash
    (``charCodeAt``) would fold two surrogates, so keys for such text
    differ from those produced by UTF-16 implementations.
    """
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


@dataclass(frozen=True)
class CacheConfig:
    """Response cache configuration."""

    enabled: bool = False
    ttl_ms: int = 3600000
    max_size: int = 1000
    key_prefix: str = "cache"


@dataclass(frozen=True)
class CacheEntry:
    """A cached summarisation result. Never mutated after creation."""

    bullets: tuple[str, ...]
    truncated: bool
    timestamp: int
    ttl: int

    def is_expired(self, now: int) -> bool:
        return now - self.timestamp > self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {
            "bullets": list(self.bullets),
            "truncated": self.truncated,
            "timestamp": self.timestamp,
            "ttl": self.ttl,
        }

    @classmethod
    def from_dict(cls, data: Any) -> CacheEntry:
        """Rebuild an entry, raising ValueError on malformed data."""
        if not isinstance(data, dict):
            raise ValueError("cache entry is not an object")
        bullets = data.get("bullets")
        if not isinstance(bullets, list) or not all(isinstance(b, str) for b in bullets):
            raise ValueError("cache entry bullets malformed")
        try:
            return cls(
                bullets=tuple(bullets),
                truncated=bool(data.get("truncated", False)),
                timestamp=int(data["timestamp"]),
                ttl=int(data["ttl"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"cache entry malformed: {e}") from e


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    enabled: bool

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "maxSize": self.max_size, "enabled": self.enabled}


class ResponseCache:
    """Caches bullet lists by input fingerprint with TTL expiry and eviction.

    Expiry is lazy: an expired entry is deleted when it is next read, and
    the store drops it once its store-level TTL passes. Inserts below
    ``max_size`` only count keys. When an insert would push the cache past
    ``max_size``, expired entries are swept and, if it is still full, the
    oldest 20% (by creation time) are evicted inside the same ``set`` call.

    Store failures are logged and treated as misses.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._config = config or CacheConfig()
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def key_for(self, text: str) -> str:
        """Store key for ``text``."""
        return f"{self._config.key_prefix}:{fingerprint(text)}"

    async def get(self, text: str) -> CacheEntry | None:
        """Return the live entry for ``text``, or None."""
        if not self._config.enabled:
            return None

        key = self.key_for(text)
        try:
            raw = await self._store.get(key)
            if raw is None:
                return None
            try:
                entry = CacheEntry.from_dict(raw)
            except ValueError as e:
                log.warning("cache_entry_malformed", key=key, error=str(e))
                await self._store.delete(key)
                return None
            if entry.is_expired(self._clock()):
                await self._store.delete(key)
                return None
            return entry
        except StoreError as e:
            log.error("cache_get_error", key=key, error=str(e))
            return None

    async def set(
        self,
        text: str,
        bullets: Sequence[str],
        truncated: bool,
        ttl: int | None = None,
    ) -> None:
        """Store ``bullets`` for ``text``, evicting old entries if full."""
        if not self._config.enabled:
            return

        key = self.key_for(text)
        entry_ttl = ttl or self._config.ttl_ms
        try:
            keys = await self._store.keys(f"{self._config.key_prefix}:*")
            if key not in keys and len(keys) >= self._config.max_size:
                live = await self._sweep(keys)
                if len(live) >= self._config.max_size:
                    await self._evict_oldest(live)

            entry = CacheEntry(
                bullets=tuple(bullets),
                truncated=truncated,
                timestamp=self._clock(),
                ttl=entry_ttl,
            )
            await self._store.set(key, entry.to_dict(), ttl_ms=entry_ttl)
        except StoreError as e:
            log.error("cache_set_error", key=key, error=str(e))

    async def delete(self, text: str) -> None:
        """Drop the entry for ``text`` if present."""
        if not self._config.enabled:
            return
        try:
            await self._store.delete(self.key_for(text))
        except StoreError as e:
            log.error("cache_delete_error", error=str(e))

    async def clear(self) -> None:
        """Remove every cache entry."""
        if not self._config.enabled:
            return
        try:
            keys = await self._store.keys(f"{self._config.key_prefix}:*")
            if keys:
                await self._store.delete(*keys)
        except StoreError as e:
            log.error("cache_clear_error", error=str(e))

    async def get_stats(self) -> CacheStats:
        """Current size, capacity and enabled flag."""
        size = 0
        if self._config.enabled:
            try:
                size = len(await self._store.keys(f"{self._config.key_prefix}:*"))
            except StoreError as e:
                log.error("cache_stats_error", error=str(e))
        return CacheStats(size=size, max_size=self._config.max_size, enabled=self._config.enabled)

    async def is_healthy(self) -> bool:
        return await self._store.is_healthy()

    async def _sweep(self, keys: list[str]) -> dict[str, CacheEntry]:
        """Delete expired or malformed entries among ``keys`` and return the live ones."""
        now = self._clock()
        live: dict[str, CacheEntry] = {}
        stale: list[str] = []
        for key in keys:
            raw = await self._store.get(key)
            if raw is None:
                continue
            try:
                entry = CacheEntry.from_dict(raw)
            except ValueError:
                stale.append(key)
                continue
            if entry.is_expired(now):
                stale.append(key)
            else:
                live[key] = entry
        if stale:
            await self._store.delete(*stale)
        return live

    async def _evict_oldest(self, live: dict[str, CacheEntry]) -> None:
        to_remove = math.ceil(self._config.max_size * EVICTION_FRACTION)
        oldest = sorted(live, key=lambda k: live[k].timestamp)[:to_remove]
        if oldest:
            await self._store.delete(*oldest)
            for key in oldest:
                del live[key]
            log.info("cache_evicted", count=len(oldest), max_size=self._config.max_size)
