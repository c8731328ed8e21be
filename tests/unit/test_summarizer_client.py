"""Tests for the summarization service client."""

import json

import httpx
import pytest

from dotdotdot.summarizer import (
    SummarizerClient,
    SummarizerExhaustedError,
    SummarizerHTTPError,
    SummarizerResponseError,
)

API_URL = "https://summarizer.test/v1/chat/completions"


def completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def make_client(handler, **kwargs) -> SummarizerClient:
    return SummarizerClient(
        API_URL,
        api_key="test-key",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestGenerateBullets:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return completion("- Revenue grew\n- Costs fell\n- Hiring on track")

        client = make_client(handler, model="test-model")
        bullets = await client.generate_bullets("Revenue grew and costs fell.")
        await client.close()

        assert bullets == ["Revenue grew", "Costs fell", "Hiring on track"]
        assert len(requests) == 1
        assert requests[0].headers["Authorization"] == "Bearer test-key"
        payload = json.loads(requests[0].content)
        assert payload["model"] == "test-model"
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][1]["content"].endswith("Revenue grew and costs fell.")

    @pytest.mark.asyncio
    async def test_json_reply(self) -> None:
        client = make_client(lambda request: completion('{"bullets": ["A", "B"]}'))
        assert await client.generate_bullets("text") == ["A", "B"]

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self) -> None:
        responses = iter([httpx.Response(503), completion("- Recovered")])
        client = make_client(lambda request: next(responses))

        assert await client.generate_bullets("text") == ["Recovered"]

    @pytest.mark.asyncio
    async def test_exhausted_after_max_attempts(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        client = make_client(handler)

        with pytest.raises(SummarizerExhaustedError) as exc_info:
            await client.generate_bullets("text")

        assert len(calls) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, SummarizerHTTPError)
        assert str(exc_info.value) == (
            "Failed to generate bullets after 3 attempts: "
            "API request failed: 500 Internal Server Error"
        )

    @pytest.mark.asyncio
    async def test_empty_content_is_retried(self) -> None:
        client = make_client(lambda request: completion(""), max_attempts=2)

        with pytest.raises(SummarizerExhaustedError) as exc_info:
            await client.generate_bullets("text")

        assert isinstance(exc_info.value.last_error, SummarizerResponseError)
        assert "Empty response from AI service" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_reply_without_bullets_is_retried(self) -> None:
        responses = iter([completion("No bullets here."), completion("- Finally")])
        client = make_client(lambda request: next(responses))

        assert await client.generate_bullets("text") == ["Finally"]

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler, max_attempts=1)

        with pytest.raises(SummarizerExhaustedError, match="Unable to reach summarizer"):
            await client.generate_bullets("text")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_releases_client(self) -> None:
        client = make_client(lambda request: completion("- A"))
        await client.generate_bullets("text")

        await client.close()

        assert client._client is None

    @pytest.mark.asyncio
    async def test_close_without_requests(self) -> None:
        client = make_client(lambda request: completion("- A"))
        await client.close()
        assert client._client is None
