"""Async client for the external summarization service.

The service speaks the OpenAI-compatible chat completions protocol. It is
treated as unreliable: transport errors, non-2xx responses and replies
without usable content are retried with linear backoff, and the final
failure is raised as :class:`SummarizerExhaustedError`.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from dotdotdot.logging import get_logger
from dotdotdot.summarizer.parsing import parse_bullets
from dotdotdot.summarizer.retry import retry_with_linear_backoff

log = get_logger("dotdotdot.summarizer.client")

SYSTEM_PROMPT = "You are an expert summarizer."
USER_PROMPT_TEMPLATE = "Convert this text into 3–5 clear, professional bullet points:\n\n{text}"


class SummarizerError(Exception):
    """Base exception for summarizer failures."""

    pass


class SummarizerConnectionError(SummarizerError):
    """Raised when the service cannot be reached."""

    pass


class SummarizerHTTPError(SummarizerError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"API request failed: {status_code} {reason}".strip())
        self.status_code = status_code


class SummarizerResponseError(SummarizerError):
    """Raised when a 2xx reply carries no usable bullets."""

    pass


class SummarizerExhaustedError(SummarizerError):
    """Raised once every attempt has failed."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Failed to generate bullets after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class Summarizer(Protocol):
    """Anything that can turn text into bullet points."""

    async def generate_bullets(self, text: str) -> list[str]: ...


class SummarizerClient:
    """HTTP client for a chat-completions summarization endpoint."""

    def __init__(
        self,
        api_url: str,
        *,
        api_key: str | None = None,
        model: str = "llama-3.1-8b-instant",
        temperature: float = 0.3,
        max_tokens: int = 300,
        timeout: float = 20.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the summarizer client.

        Args:
            api_url: Full URL of the chat completions endpoint.
            api_key: Bearer token, if the endpoint requires one.
            model: Model name sent with each request.
            temperature: Sampling temperature.
            max_tokens: Reply length cap.
            timeout: Timeout in seconds for each attempt.
            max_attempts: Attempts before giving up.
            backoff_seconds: Base delay between attempts.
            transport: Optional httpx transport (used by tests).
        """
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        log.info("summarizer_client_initialized", api_url=api_url, model=model)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            log.debug("summarizer_client_closed")

    def _build_payload(self, text: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT_TEMPLATE.format(text=text)},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    async def _request_bullets(self, text: str) -> list[str]:
        """Make one attempt. Raises a SummarizerError subclass on failure."""
        client = await self._get_client()
        try:
            response = await client.post(self._api_url, json=self._build_payload(text))
        except httpx.RequestError as e:
            raise SummarizerConnectionError(f"Unable to reach summarizer: {e}") from e

        if not response.is_success:
            raise SummarizerHTTPError(response.status_code, response.reason_phrase)

        try:
            body = response.json()
        except ValueError as e:
            raise SummarizerResponseError("Summarizer returned invalid JSON") from e

        content = _extract_content(body)
        if not content:
            raise SummarizerResponseError("Empty response from AI service")

        bullets = parse_bullets(content)
        if not bullets:
            raise SummarizerResponseError("No bullet points found in AI response")
        return bullets

    async def generate_bullets(self, text: str) -> list[str]:
        """Summarise ``text`` into bullet points, retrying transient failures.

        Raises:
            SummarizerExhaustedError: Every attempt failed.
        """
        try:
            bullets = await retry_with_linear_backoff(
                lambda: self._request_bullets(text),
                max_attempts=self._max_attempts,
                base_delay=self._backoff_seconds,
                retry_on=(SummarizerError,),
            )
        except SummarizerError as e:
            raise SummarizerExhaustedError(self._max_attempts, e) from e

        log.info("bullets_generated", count=len(bullets), input_length=len(text))
        return bullets


def _extract_content(body: Any) -> str:
    """Pull ``choices[0].message.content`` out of a completions reply."""
    if not isinstance(body, dict):
        return ""
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""
