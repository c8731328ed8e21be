"""Redis-backed key-value store for multi-node deployments."""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from dotdotdot.logging import get_logger
from dotdotdot.store.base import KeyValueStore, StoreError

log = get_logger("dotdotdot.store.redis")


class RedisStore(KeyValueStore):
    """Store backed by ``redis.asyncio``.

    Every operation maps to one Redis command, so INCR/PEXPIRE semantics
    (atomic increments, server-side expiry) come from Redis itself.
    """

    def __init__(
        self,
        url: str,
        key_prefix: str = "",
        *,
        client: redis.Redis | None = None,
    ) -> None:
        super().__init__(key_prefix)
        self._url = url
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        return self._client

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._get_client().get(self._full_key(key))
        except (RedisError, OSError) as e:
            raise StoreError(f"GET {key!r} failed: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StoreError(f"Value at {key!r} is not valid JSON") from e

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key!r} is not serialisable: {e}") from e
        try:
            await self._get_client().set(self._full_key(key), encoded, px=ttl_ms or None)
        except (RedisError, OSError) as e:
            raise StoreError(f"SET {key!r} failed: {e}") from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._get_client().delete(*(self._full_key(k) for k in keys)))
        except (RedisError, OSError) as e:
            raise StoreError(f"DEL failed: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            return int(await self._get_client().exists(self._full_key(key))) > 0
        except (RedisError, OSError) as e:
            raise StoreError(f"EXISTS {key!r} failed: {e}") from e

    async def incr(self, key: str) -> int:
        try:
            return int(await self._get_client().incr(self._full_key(key)))
        except (RedisError, OSError) as e:
            raise StoreError(f"INCR {key!r} failed: {e}") from e

    async def decr(self, key: str) -> int:
        try:
            return int(await self._get_client().decr(self._full_key(key)))
        except (RedisError, OSError) as e:
            raise StoreError(f"DECR {key!r} failed: {e}") from e

    async def expire(self, key: str, ttl_ms: int) -> bool:
        try:
            return bool(await self._get_client().pexpire(self._full_key(key), ttl_ms))
        except (RedisError, OSError) as e:
            raise StoreError(f"PEXPIRE {key!r} failed: {e}") from e

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = int(await self._get_client().pttl(self._full_key(key)))
        except (RedisError, OSError) as e:
            raise StoreError(f"PTTL {key!r} failed: {e}") from e
        # -2: missing, -1: no expiry
        if remaining < 0:
            return None
        return remaining

    async def keys(self, pattern: str = "*") -> list[str]:
        found: list[str] = []
        try:
            async for full_key in self._get_client().scan_iter(match=self._full_key(pattern)):
                found.append(self._relative_key(full_key))
        except (RedisError, OSError) as e:
            raise StoreError(f"SCAN {pattern!r} failed: {e}") from e
        return found

    async def ping(self) -> bool:
        try:
            return bool(await self._get_client().ping())
        except (RedisError, OSError) as e:
            raise StoreError(f"PING failed: {e}") from e

    async def close(self) -> None:
        if self._client is None:
            return
        client = self._client
        self._client = None
        await client.aclose()
        log.debug("redis_store_closed")
