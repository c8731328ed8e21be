"""Origin and referer allow-list checks."""

from __future__ import annotations

from urllib.parse import urlsplit


def _normalise(url: str) -> str:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def check_origin(
    origin: str | None,
    referer: str | None,
    allowed_origins: list[str],
) -> str | None:
    """Check request provenance against the allow-list.

    The ``Origin`` header wins when present; otherwise the origin part of
    ``Referer`` is compared. An empty allow-list disables the check.

    Returns:
        ``None`` when allowed, otherwise the rejection message.
    """
    if not allowed_origins:
        return None
    allowed = {_normalise(o) for o in allowed_origins} - {""}
    if "*" in allowed_origins:
        return None

    if origin:
        if _normalise(origin) in allowed:
            return None
        return "Unauthorized origin"

    if referer and _normalise(referer) in allowed:
        return None
    return "Invalid referer"
