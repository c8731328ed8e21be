"""Retry helper for calls to the summarization service."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from dotdotdot.logging import get_logger

log = get_logger("dotdotdot.summarizer.retry")

T = TypeVar("T")


async def retry_with_linear_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Call ``func`` until it succeeds or ``max_attempts`` is spent.

    After failed attempt ``n`` the helper sleeps ``n * base_delay`` seconds.

    Raises:
        The last exception if every attempt fails.
    """
    last_exception: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except retry_on as e:
            last_exception = e
            if attempt < max_attempts:
                delay = attempt * base_delay
                log.warning(
                    "summarizer_call_failed_retrying",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)
            else:
                log.error(
                    "summarizer_call_failed_max_attempts",
                    max_attempts=max_attempts,
                    error=str(e),
                )

    if last_exception:
        raise last_exception
    raise RuntimeError("Retry function failed without exception")
