"""Stateless CSRF tokens signed with HMAC-SHA256.

Production tokens are ``<timestamp>:<nonce>:<signature>``; development
tokens are ``dev:<session_id>:<timestamp>:<signature>`` so they stay
stable across rapid reloads. A token's validity depends only on its own
fields, the server secret and the current time; nothing is stored.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from collections.abc import Callable

from dotdotdot.logging import get_logger

log = get_logger("dotdotdot.security.csrf")

DEV_TOKEN_TAG = "dev"  # nosec B105
NONCE_BYTES = 16
DEFAULT_MAX_AGE_MS = 5 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class CSRFTokenService:
    """Generates and validates self-describing CSRF tokens."""

    def __init__(
        self,
        secret: str,
        *,
        development: bool = False,
        session_id: str = "dev-session",
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the token service.

        Args:
            secret: Server secret used as the HMAC key.
            development: Issue (and accept) the development token format.
            session_id: Identifier embedded in development tokens.
            max_age_ms: Tokens older than this are rejected.
            clock: Returns the current wall-clock time in milliseconds.
        """
        if not secret:
            raise ValueError("CSRF secret must not be empty")
        if ":" in session_id:
            raise ValueError("session_id must not contain ':'")
        self._key = secret.encode("utf-8")
        self._development = development
        self._session_id = session_id
        self._max_age_ms = max_age_ms
        self._clock = clock

    def _sign(self, payload: str) -> str:
        return hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def generate_token(self) -> str:
        """Issue a new token for the current time."""
        timestamp = str(self._clock())
        if self._development:
            payload = f"{DEV_TOKEN_TAG}:{self._session_id}:{timestamp}"
        else:
            payload = f"{timestamp}:{secrets.token_hex(NONCE_BYTES)}"
        return f"{payload}:{self._sign(payload)}"

    def validate_token(self, token: str | None) -> bool:
        """Return True if ``token`` is well formed, fresh and correctly signed.

        Never raises: any parse problem is a rejection.
        """
        if not token or not isinstance(token, str):
            return False
        try:
            return self._validate(token)
        except (ValueError, TypeError, UnicodeError) as e:
            log.debug("csrf_token_unparseable", error=str(e))
            return False

    def _validate(self, token: str) -> bool:
        parts = token.split(":")
        if len(parts) < 3:
            return False

        if parts[0] == DEV_TOKEN_TAG:
            if not self._development or len(parts) != 4:
                return False
            _, session_id, timestamp, signature = parts
            payload = f"{DEV_TOKEN_TAG}:{session_id}:{timestamp}"
        else:
            if len(parts) != 3:
                return False
            timestamp, nonce, signature = parts
            payload = f"{timestamp}:{nonce}"

        if not timestamp.isdigit():
            return False
        if self._clock() - int(timestamp) > self._max_age_ms:
            return False

        expected = self._sign(payload)
        return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))
