"""Key-value store interface shared by the rate limiter and the cache."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""

    pass


class KeyValueStore(ABC):
    """Async key-value store with per-key expiry.

    Keys passed to and returned from every method are relative to the
    store's namespace prefix. Values must be JSON-serialisable. Each method
    is a single atomic store operation; failures raise :class:`StoreError`.
    """

    def __init__(self, key_prefix: str = "") -> None:
        self._key_prefix = key_prefix

    @property
    def key_prefix(self) -> str:
        return self._key_prefix

    def _full_key(self, key: str) -> str:
        if not self._key_prefix:
            return key
        return f"{self._key_prefix}:{key}"

    def _relative_key(self, full_key: str) -> str:
        if self._key_prefix and full_key.startswith(f"{self._key_prefix}:"):
            return full_key[len(self._key_prefix) + 1 :]
        return full_key

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value at ``key``, or None if missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        """Store ``value``, optionally expiring after ``ttl_ms`` milliseconds."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return True if ``key`` holds a live value."""

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment the integer at ``key`` (missing counts as 0)."""

    @abstractmethod
    async def decr(self, key: str) -> int:
        """Atomically decrement the integer at ``key`` (missing counts as 0)."""

    @abstractmethod
    async def expire(self, key: str, ttl_ms: int) -> bool:
        """Set a TTL on an existing key. Returns False if the key is missing."""

    @abstractmethod
    async def ttl(self, key: str) -> int | None:
        """Remaining lifetime in milliseconds, or None if missing or persistent."""

    @abstractmethod
    async def keys(self, pattern: str = "*") -> list[str]:
        """Return live keys matching a glob ``pattern``."""

    @abstractmethod
    async def ping(self) -> bool:
        """Round-trip to the store. Raises StoreError when unreachable."""

    async def flush(self) -> int:
        """Delete every key in this store's namespace."""
        found = await self.keys("*")
        if not found:
            return 0
        return await self.delete(*found)

    async def is_healthy(self) -> bool:
        """Return True if the store answers a ping."""
        try:
            return await self.ping()
        except StoreError:
            return False

    async def close(self) -> None:
        """Release any connections held by the store."""
        return None
