"""Turn a summarizer reply into a list of bullet strings."""

from __future__ import annotations

import json
import re
from typing import Any

BULLET_MARKERS = ("-", "•", "*")

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _strip_marker(line: str) -> str:
    line = line.strip()
    for marker in BULLET_MARKERS:
        if line.startswith(marker):
            return line[len(marker) :].strip()
    return line


def extract_bullet_lines(content: str) -> list[str]:
    """Lenient fallback: every line starting with a bullet marker is a bullet."""
    bullets = []
    for line in content.splitlines():
        if line.strip().startswith(BULLET_MARKERS):
            text = _strip_marker(line)
            if text:
                bullets.append(text)
    return bullets


def _from_structured(data: Any) -> list[str] | None:
    if isinstance(data, dict):
        data = data.get("bullets")
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        return None
    return [b for b in (_strip_marker(item) for item in data) if b]


def parse_bullets(content: str) -> list[str]:
    """Parse a JSON bullet list, falling back to line extraction.

    Accepts a JSON array of strings or an object with a ``bullets`` array,
    optionally wrapped in a Markdown code fence.
    """
    text = content.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    if text.startswith(("[", "{")):
        try:
            structured = _from_structured(json.loads(text))
        except ValueError:
            structured = None
        if structured is not None:
            return structured

    return extract_bullet_lines(content)
