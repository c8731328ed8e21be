"""Tests for the linear backoff retry helper."""

from unittest.mock import AsyncMock, patch

import pytest

from dotdotdot.summarizer.retry import retry_with_linear_backoff


class TestRetryWithLinearBackoff:
    @pytest.mark.asyncio
    async def test_returns_first_success(self) -> None:
        func = AsyncMock(return_value="ok")

        assert await retry_with_linear_backoff(func) == "ok"
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_linear_delays_between_attempts(self) -> None:
        func = AsyncMock(side_effect=[RuntimeError("1"), RuntimeError("2"), "ok"])

        with patch(
            "dotdotdot.summarizer.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            result = await retry_with_linear_backoff(func, max_attempts=3, base_delay=1.0)

        assert result == "ok"
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_raises_last_exception(self) -> None:
        func = AsyncMock(side_effect=[RuntimeError("first"), RuntimeError("last")])

        with pytest.raises(RuntimeError, match="last"):
            await retry_with_linear_backoff(func, max_attempts=2, base_delay=0)

        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_propagates_immediately(self) -> None:
        func = AsyncMock(side_effect=KeyError("nope"))

        with pytest.raises(KeyError):
            await retry_with_linear_backoff(func, base_delay=0, retry_on=(ValueError,))

        func.assert_awaited_once()
