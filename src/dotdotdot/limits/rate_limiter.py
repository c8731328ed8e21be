"""Fixed-window rate limiting keyed by caller identity.

Counters live in the shared :class:`KeyValueStore` and expire with their
window. When the store is unreachable the limiter fails open: the request
is admitted as if it were the first in its window. This trades strict
enforcement for availability during store outages.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from dotdotdot.logging import get_logger
from dotdotdot.store.base import KeyValueStore, StoreError

log = get_logger("dotdotdot.limits.rate_limiter")


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiter configuration."""

    enabled: bool = True
    window_ms: int = 60 * 1000
    max_requests: int = 10
    key_prefix: str = "rate_limit"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check.

    ``reset_time`` is the wall-clock time in milliseconds at which the
    caller's current window ends.
    """

    success: bool
    remaining: int
    reset_time: int
    total: int

    def retry_after_seconds(self, now: int) -> int:
        """Whole seconds from ``now`` (ms) until the window resets, at least 1."""
        return max(1, -(-(self.reset_time - now) // 1000))


class FixedWindowRateLimiter:
    """Counts requests per identity within fixed windows."""

    def __init__(
        self,
        store: KeyValueStore,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._config = config or RateLimitConfig()
        self._clock = clock

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def _key(self, identity: str) -> str:
        return f"{self._config.key_prefix}:{identity or 'unknown'}"

    async def _reset_time(self, key: str, now: int) -> int:
        remaining_ms = await self._store.ttl(key)
        if remaining_ms is None:
            # The expiry set after the first increment is best effort; repair it.
            await self._store.expire(key, self._config.window_ms)
            remaining_ms = self._config.window_ms
        return now + remaining_ms

    async def check_limit(self, identity: str) -> RateLimitResult:
        """Admit or reject one request from ``identity``.

        Rejected requests are not counted. Admitted requests increment the
        counter atomically; the first increment of a window sets its expiry.
        """
        cfg = self._config
        now = self._clock()
        if not cfg.enabled:
            return RateLimitResult(
                success=True, remaining=cfg.max_requests, reset_time=now, total=0
            )

        key = self._key(identity)
        try:
            current = int(await self._store.get(key) or 0)
            if current >= cfg.max_requests:
                return RateLimitResult(
                    success=False,
                    remaining=0,
                    reset_time=await self._reset_time(key, now),
                    total=current,
                )

            new_count = await self._store.incr(key)
            if new_count == 1:
                await self._store.expire(key, cfg.window_ms)
                reset_time = now + cfg.window_ms
            else:
                reset_time = await self._reset_time(key, now)

            if new_count > cfg.max_requests:
                # A concurrent request took the last slot between GET and INCR.
                await self._store.decr(key)
                return RateLimitResult(
                    success=False,
                    remaining=0,
                    reset_time=reset_time,
                    total=cfg.max_requests,
                )

            return RateLimitResult(
                success=True,
                remaining=max(0, cfg.max_requests - new_count),
                reset_time=reset_time,
                total=new_count,
            )
        except (StoreError, TypeError, ValueError) as e:
            log.error("rate_limit_store_error", identity=identity, error=str(e))
            return RateLimitResult(
                success=True,
                remaining=cfg.max_requests - 1,
                reset_time=now + cfg.window_ms,
                total=1,
            )

    async def get_remaining(self, identity: str) -> int:
        """Requests ``identity`` may still make in its current window."""
        if not self._config.enabled:
            return self._config.max_requests
        try:
            current = int(await self._store.get(self._key(identity)) or 0)
        except (StoreError, TypeError, ValueError) as e:
            log.error("rate_limit_remaining_error", identity=identity, error=str(e))
            return self._config.max_requests
        return max(0, self._config.max_requests - current)

    async def reset(self, identity: str) -> None:
        """Forget ``identity``'s counter, starting a fresh window."""
        if not self._config.enabled:
            return
        try:
            await self._store.delete(self._key(identity))
        except StoreError as e:
            log.error("rate_limit_reset_error", identity=identity, error=str(e))

    async def penalize(self, identity: str) -> None:
        """Exhaust ``identity``'s quota for a full window."""
        if not self._config.enabled:
            return
        try:
            await self._store.set(
                self._key(identity), self._config.max_requests, ttl_ms=self._config.window_ms
            )
            log.warning("rate_limit_penalty_applied", identity=identity)
        except StoreError as e:
            log.error("rate_limit_penalize_error", identity=identity, error=str(e))
