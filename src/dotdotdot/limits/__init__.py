"""Per-caller request limits."""

from dotdotdot.limits.rate_limiter import FixedWindowRateLimiter, RateLimitConfig, RateLimitResult

__all__ = ["FixedWindowRateLimiter", "RateLimitConfig", "RateLimitResult"]
