"""Normalisation of sanitized input before summarisation."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_MAX_CHARS = 1000
TRUNCATION_MARKER = "..."

_GREETING_LINE = re.compile(r"^(?:hi|hello|dear)[^\n]*\n", re.IGNORECASE)
_SIGN_OFF = re.compile(r"(?:best regards|sincerely|cheers)[^\n]*\Z", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n{2,}")
_INLINE_SPACE = re.compile(r"[ \t]{2,}")


@dataclass(frozen=True)
class ProcessedInput:
    cleaned: str
    truncated: bool
    original_length: int


def process_user_input(raw: str, max_chars: int = DEFAULT_MAX_CHARS) -> ProcessedInput:
    """Strip greeting and sign-off boilerplate, collapse whitespace and truncate.

    Text longer than ``max_chars`` is cut and suffixed with ``...``.
    """
    cleaned = raw.strip()
    cleaned = _GREETING_LINE.sub("", cleaned, count=1)
    cleaned = _SIGN_OFF.sub("", cleaned, count=1)
    cleaned = _BLANK_LINES.sub("\n", cleaned)
    cleaned = _INLINE_SPACE.sub(" ", cleaned)
    cleaned = cleaned.strip()

    if len(cleaned) > max_chars:
        return ProcessedInput(
            cleaned=cleaned[:max_chars] + TRUNCATION_MARKER,
            truncated=True,
            original_length=len(raw),
        )
    return ProcessedInput(cleaned=cleaned, truncated=False, original_length=len(raw))
