"""Client for the external summarization service."""

from dotdotdot.summarizer.client import (
    Summarizer,
    SummarizerClient,
    SummarizerConnectionError,
    SummarizerError,
    SummarizerExhaustedError,
    SummarizerHTTPError,
    SummarizerResponseError,
)
from dotdotdot.summarizer.parsing import extract_bullet_lines, parse_bullets

__all__ = [
    "Summarizer",
    "SummarizerClient",
    "SummarizerConnectionError",
    "SummarizerError",
    "SummarizerExhaustedError",
    "SummarizerHTTPError",
    "SummarizerResponseError",
    "extract_bullet_lines",
    "parse_bullets",
]
