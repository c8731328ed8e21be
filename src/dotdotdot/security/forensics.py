"""Forensic logging for security events.

Records carry a hash, length and short preview of the offending input,
never the full text.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from typing import Literal

from dotdotdot.logging import get_logger

log = get_logger("dotdotdot.security.forensics")

SecurityEventType = Literal["threat", "warning", "blocked"]


def log_security_event(
    event: SecurityEventType,
    details: str,
    content: str,
    *,
    ip: str | None = None,
    threats: list[str] | None = None,
    warnings: list[str] | None = None,
) -> None:
    """Log a detailed forensic record for a security event."""
    content_hash = hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()

    log.warning(
        "security_event",
        event_type=event,
        details=details,
        ip=ip or "unknown",
        timestamp=datetime.now(UTC).isoformat(),
        threats=threats or [],
        warnings=warnings or [],
        content_hash=content_hash,
        content_length=len(content),
        content_preview=content[:100],
    )
