"""Key-value store backends.

The rate limiter and response cache receive a :class:`KeyValueStore`
handle at construction; the same component logic runs on the in-process
backend or on Redis.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotdotdot.store.base import KeyValueStore, StoreError
from dotdotdot.store.memory import InMemoryStore

if TYPE_CHECKING:
    from dotdotdot.config import Settings

__all__ = ["InMemoryStore", "KeyValueStore", "StoreError", "create_store"]


def create_store(settings: Settings) -> KeyValueStore:
    """Build the store selected by ``settings.kv_backend``."""
    if settings.kv_backend == "redis":
        from dotdotdot.store.redis import RedisStore

        return RedisStore(settings.redis_url, key_prefix=settings.kv_key_prefix)
    return InMemoryStore(key_prefix=settings.kv_key_prefix)
