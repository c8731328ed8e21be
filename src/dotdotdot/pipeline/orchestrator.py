"""The bullets request pipeline.

Stages run in a fixed order and any stage can short-circuit the rest:

1. origin/referer allow-list
2. content type
3. per-caller rate limit
4. body parsing
5. CSRF token
6. input security classification (escalated callers are blocked)
7. normalisation, truncation and minimum length
8. cache lookup, then the summarizer on a miss
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from dotdotdot.cache.response_cache import CacheStats, ResponseCache
from dotdotdot.limits.rate_limiter import FixedWindowRateLimiter
from dotdotdot.logging import get_logger
from dotdotdot.pipeline.errors import (
    DeadlineExceededError,
    ForbiddenError,
    InvalidRequestError,
    RateLimitExceededError,
    UpstreamError,
)
from dotdotdot.security.classifier import check_input_security, should_rate_limit_by_threats
from dotdotdot.security.csrf import CSRFTokenService
from dotdotdot.security.forensics import log_security_event
from dotdotdot.security.origin import check_origin
from dotdotdot.summarizer.client import Summarizer, SummarizerError
from dotdotdot.text import process_user_input

log = get_logger("dotdotdot.pipeline.orchestrator")

JSON_CONTENT_TYPE = "application/json"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class BulletRequest:
    """Transport-independent view of an inbound bullets request."""

    identity: str
    body: bytes | str
    content_type: str | None = None
    origin: str | None = None
    referer: str | None = None
    csrf_header: str | None = None


@dataclass(frozen=True)
class BulletResponse:
    bullets: list[str]
    truncated: bool
    original_length: int
    processed_length: int
    cache_hit: bool = False
    cache_stats: CacheStats | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "bullets": list(self.bullets),
            "truncated": self.truncated,
            "originalLength": self.original_length,
            "processedLength": self.processed_length,
        }
        if self.cache_stats is not None:
            data["cacheStats"] = self.cache_stats.to_dict()
        return data


class BulletPipeline:
    """Composes the request defences around the summarizer."""

    def __init__(
        self,
        *,
        rate_limiter: FixedWindowRateLimiter,
        csrf: CSRFTokenService,
        cache: ResponseCache,
        summarizer: Summarizer,
        allowed_origins: list[str] | None = None,
        max_chars: int = 1000,
        min_chars: int = 10,
        deadline_seconds: float = 30.0,
        expose_cache_stats: bool = False,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._csrf = csrf
        self._cache = cache
        self._summarizer = summarizer
        self._allowed_origins = allowed_origins or []
        self._max_chars = max_chars
        self._min_chars = min_chars
        self._deadline_seconds = deadline_seconds
        self._expose_cache_stats = expose_cache_stats
        self._clock = clock

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def issue_csrf_token(self) -> str:
        """Generate a CSRF token for a client to echo back."""
        return self._csrf.generate_token()

    async def process(self, request: BulletRequest) -> BulletResponse:
        """Run every stage for ``request``.

        Raises:
            PipelineError: A stage rejected the request.
        """
        try:
            async with asyncio.timeout(self._deadline_seconds):
                return await self._run(request)
        except TimeoutError as e:
            log.error(
                "bullets_deadline_exceeded",
                identity=request.identity,
                deadline_seconds=self._deadline_seconds,
            )
            raise DeadlineExceededError("Request timed out") from e

    async def _run(self, request: BulletRequest) -> BulletResponse:
        identity = request.identity

        rejection = check_origin(request.origin, request.referer, self._allowed_origins)
        if rejection is not None:
            source = request.origin or request.referer or ""
            log_security_event("blocked", rejection, source, ip=identity)
            raise ForbiddenError(rejection)

        media_type = (request.content_type or "").split(";")[0].strip().lower()
        if media_type != JSON_CONTENT_TYPE:
            raise InvalidRequestError("Content-Type must be application/json")

        limit = await self._rate_limiter.check_limit(identity)
        if not limit.success:
            log.warning("rate_limited", identity=identity, reset_time=limit.reset_time)
            raise RateLimitExceededError(
                "Rate limit exceeded. Please try again later.",
                reset_time=limit.reset_time,
                retry_after=limit.retry_after_seconds(self._clock()),
            )

        raw_input, token = self._parse_body(request)

        if not self._csrf.validate_token(token):
            log_security_event("blocked", "Invalid CSRF token", raw_input, ip=identity)
            raise ForbiddenError("Invalid or expired CSRF token")

        check = check_input_security(raw_input)
        if not check.is_safe:
            log_security_event(
                "threat",
                "; ".join(check.threats),
                raw_input,
                ip=identity,
                threats=check.threats,
                warnings=check.warnings,
            )
            if should_rate_limit_by_threats(check.threats):
                log_security_event(
                    "blocked", "High-risk input", raw_input, ip=identity, threats=check.threats
                )
                await self._rate_limiter.penalize(identity)
                raise ForbiddenError("Request blocked for security reasons")
        elif check.warnings:
            log_security_event(
                "warning",
                "; ".join(check.warnings),
                raw_input,
                ip=identity,
                warnings=check.warnings,
            )

        processed = process_user_input(check.sanitized_input, self._max_chars)
        if len(processed.cleaned) < self._min_chars:
            raise InvalidRequestError(
                f"Input too short. Please provide at least {self._min_chars} characters."
            )

        cached = await self._cache.get(processed.cleaned)
        cache_hit = cached is not None
        if cached is not None:
            bullets = list(cached.bullets)
            log.info("bullets_cache_hit", identity=identity)
        else:
            try:
                bullets = await self._summarizer.generate_bullets(processed.cleaned)
            except SummarizerError as e:
                log.error("bullets_upstream_failed", identity=identity, error=str(e))
                raise UpstreamError(str(e)) from e
            await self._cache.set(processed.cleaned, bullets, processed.truncated)

        cache_stats = await self._cache.get_stats() if self._expose_cache_stats else None

        return BulletResponse(
            bullets=bullets,
            truncated=processed.truncated,
            original_length=len(raw_input),
            processed_length=len(processed.cleaned),
            cache_hit=cache_hit,
            cache_stats=cache_stats,
        )

    @staticmethod
    def _parse_body(request: BulletRequest) -> tuple[str, str | None]:
        """Return the ``input`` text and CSRF token from the JSON body."""
        try:
            data = json.loads(request.body or b"")
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidRequestError("Invalid input format") from e

        if not isinstance(data, dict):
            raise InvalidRequestError("Invalid input format")
        raw_input = data.get("input")
        if not isinstance(raw_input, str) or not raw_input:
            raise InvalidRequestError("Invalid input format")

        token = data.get("csrfToken")
        if not isinstance(token, str):
            token = request.csrf_header
        return raw_input, token
