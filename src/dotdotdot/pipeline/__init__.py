"""Bullets request pipeline and its wiring."""

from __future__ import annotations

from dotdotdot.cache.response_cache import CacheConfig, ResponseCache
from dotdotdot.config import DEV_CSRF_SECRET, Settings
from dotdotdot.limits.rate_limiter import FixedWindowRateLimiter, RateLimitConfig
from dotdotdot.logging import get_logger
from dotdotdot.pipeline.errors import (
    DeadlineExceededError,
    ForbiddenError,
    InvalidRequestError,
    PipelineError,
    RateLimitExceededError,
    UpstreamError,
)
from dotdotdot.pipeline.orchestrator import BulletPipeline, BulletRequest, BulletResponse
from dotdotdot.security.csrf import CSRFTokenService
from dotdotdot.store.base import KeyValueStore
from dotdotdot.summarizer.client import Summarizer

log = get_logger("dotdotdot.pipeline")

__all__ = [
    "BulletPipeline",
    "BulletRequest",
    "BulletResponse",
    "DeadlineExceededError",
    "ForbiddenError",
    "InvalidRequestError",
    "PipelineError",
    "RateLimitExceededError",
    "UpstreamError",
    "create_pipeline",
]


def create_pipeline(
    settings: Settings,
    *,
    store: KeyValueStore,
    summarizer: Summarizer,
) -> BulletPipeline:
    """Build a pipeline whose components share ``store``."""
    csrf_secret = settings.csrf_secret_value
    if csrf_secret == DEV_CSRF_SECRET and not settings.is_development:
        log.warning("csrf_secret_missing", detail="using development default secret")

    rate_limiter = FixedWindowRateLimiter(
        store,
        RateLimitConfig(
            enabled=settings.rate_limit_enabled,
            window_ms=settings.rate_limit_window_ms,
            max_requests=settings.rate_limit_max_requests,
            key_prefix=settings.rate_limit_key_prefix,
        ),
    )
    cache = ResponseCache(
        store,
        CacheConfig(
            enabled=settings.cache_enabled,
            ttl_ms=settings.cache_ttl_ms,
            max_size=settings.cache_max_size,
            key_prefix=settings.cache_key_prefix,
        ),
    )
    csrf = CSRFTokenService(
        csrf_secret,
        development=settings.is_development,
        session_id=settings.csrf_session_id,
        max_age_ms=settings.csrf_token_max_age_ms,
    )
    return BulletPipeline(
        rate_limiter=rate_limiter,
        csrf=csrf,
        cache=cache,
        summarizer=summarizer,
        allowed_origins=settings.allowed_origins,
        max_chars=settings.input_max_chars,
        min_chars=settings.input_min_chars,
        deadline_seconds=settings.request_deadline_seconds,
        expose_cache_stats=settings.is_development,
    )
