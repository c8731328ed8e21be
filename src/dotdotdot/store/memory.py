"""In-process key-value store for single-node deployments."""

from __future__ import annotations

import fnmatch
import heapq
import json
import threading
import time
from collections.abc import Callable
from typing import Any

from dotdotdot.store.base import KeyValueStore, StoreError


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class InMemoryStore(KeyValueStore):
    """Thread-safe dict-backed store with per-key expiry.

    Expired entries are dropped when read, and every write also purges
    whatever has expired since, oldest deadline first, so keys that are
    never touched again (one-off callers) do not accumulate.

    Values are kept JSON-encoded so callers never share mutable state with
    the store, matching the behaviour of a networked backend.
    """

    def __init__(
        self,
        key_prefix: str = "",
        *,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        super().__init__(key_prefix)
        self._data: dict[str, tuple[str, float | None]] = {}
        # (deadline, full_key); may hold stale deadlines for rewritten keys
        self._deadlines: list[tuple[float, str]] = []
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, full_key: str, now: float) -> tuple[str, float | None] | None:
        """Return the entry if present and unexpired. Caller holds the lock."""
        entry = self._data.get(full_key)
        if entry is None:
            return None
        deadline = entry[1]
        if deadline is not None and now >= deadline:
            del self._data[full_key]
            return None
        return entry

    def _track(self, full_key: str, deadline: float | None) -> None:
        if deadline is not None:
            heapq.heappush(self._deadlines, (deadline, full_key))

    def _purge_expired(self, now: float) -> None:
        """Drop every entry whose deadline has passed. Caller holds the lock."""
        while self._deadlines and self._deadlines[0][0] <= now:
            deadline, full_key = heapq.heappop(self._deadlines)
            entry = self._data.get(full_key)
            if entry is not None and entry[1] == deadline:
                del self._data[full_key]

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(self._full_key(key), self._clock())
        if entry is None:
            return None
        return json.loads(entry[0])

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key!r} is not serialisable: {e}") from e
        full_key = self._full_key(key)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            deadline = now + ttl_ms if ttl_ms else None
            self._data[full_key] = (encoded, deadline)
            self._track(full_key, deadline)

    async def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            now = self._clock()
            for key in keys:
                full_key = self._full_key(key)
                if self._live(full_key, now) is not None:
                    del self._data[full_key]
                    removed += 1
        return removed

    async def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(self._full_key(key), self._clock()) is not None

    def _add(self, key: str, amount: int) -> int:
        full_key = self._full_key(key)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            entry = self._live(full_key, now)
            if entry is None:
                current, deadline = 0, None
            else:
                try:
                    current = int(json.loads(entry[0]))
                except (TypeError, ValueError) as e:
                    raise StoreError(f"Value at {key!r} is not an integer") from e
                deadline = entry[1]
            current += amount
            self._data[full_key] = (json.dumps(current), deadline)
            return current

    async def incr(self, key: str) -> int:
        return self._add(key, 1)

    async def decr(self, key: str) -> int:
        return self._add(key, -1)

    async def expire(self, key: str, ttl_ms: int) -> bool:
        full_key = self._full_key(key)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            entry = self._live(full_key, now)
            if entry is None:
                return False
            self._data[full_key] = (entry[0], now + ttl_ms)
            self._track(full_key, now + ttl_ms)
            return True

    async def ttl(self, key: str) -> int | None:
        with self._lock:
            now = self._clock()
            entry = self._live(self._full_key(key), now)
        if entry is None or entry[1] is None:
            return None
        return max(0, int(entry[1] - now))

    async def keys(self, pattern: str = "*") -> list[str]:
        full_pattern = self._full_key(pattern)
        with self._lock:
            now = self._clock()
            candidates = list(self._data)
            live = [k for k in candidates if self._live(k, now) is not None]
        return [self._relative_key(k) for k in live if fnmatch.fnmatchcase(k, full_pattern)]

    async def ping(self) -> bool:
        return True
