"""Typed rejections raised by the bullets pipeline.

Each error maps to exactly one HTTP status.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for rejections surfaced to the caller."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def headers(self) -> dict[str, str]:
        return {}


class InvalidRequestError(PipelineError):
    """Malformed body, wrong content type, or input too short."""

    status = 400


class ForbiddenError(PipelineError):
    """Bad origin, bad CSRF token, or security block."""

    status = 403


class RateLimitExceededError(PipelineError):
    """Caller has used up its window."""

    status = 429

    def __init__(self, message: str, *, reset_time: int, retry_after: int) -> None:
        super().__init__(message)
        self.reset_time = reset_time
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Reset": str(self.reset_time),
        }


class UpstreamError(PipelineError):
    """The summarization service failed after every retry."""

    status = 500


class DeadlineExceededError(PipelineError):
    """The request ran past its overall deadline."""

    status = 500
