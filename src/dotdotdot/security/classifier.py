"""Input security classifier.

Each threat category is a stage: it is detected against the *original*
input, and when it fires its removal pattern is applied to the running
sanitized buffer. Stages are folded left to right, so the threat list
follows stage order and removals accumulate.

Known limitation: a removal can join characters from either side of the
removed span into a new trigger (``<scr<b></b>ipt>``). Such sequences are
not re-scanned; only categories that matched the original input are
stripped.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from dotdotdot.security.models import SecurityCheckResult, ThreatCategory, WarningCategory

MAX_INPUT_LENGTH = 10000

# Threat descriptions containing any of these words count as high risk.
HIGH_RISK_MARKERS = ("injection", "script", "command")
HIGH_RISK_THRESHOLD = 2

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


@dataclass(frozen=True)
class ThreatStage:
    """One threat category: a detector and the pattern it strips."""

    category: ThreatCategory
    description: str
    detect: Callable[[str], bool]
    remove: re.Pattern[str] | None = None

    def __call__(self, original: str, sanitized: str) -> tuple[str, str | None]:
        if not self.detect(original):
            return sanitized, None
        if self.remove is not None:
            sanitized = self.remove.sub("", sanitized)
        return sanitized, self.description


@dataclass(frozen=True)
class WarningCheck:
    """A signal reported as a warning without touching the text."""

    category: WarningCategory
    description: str
    pattern: re.Pattern[str]


def _pattern_stage(
    category: ThreatCategory, description: str, pattern: re.Pattern[str]
) -> ThreatStage:
    return ThreatStage(
        category=category,
        description=description,
        detect=lambda text: pattern.search(text) is not None,
        remove=pattern,
    )


THREAT_STAGES: tuple[ThreatStage, ...] = (
    _pattern_stage(
        ThreatCategory.SCRIPT_TAG,
        "Script tag injection detected",
        re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE),
    ),
    _pattern_stage(
        ThreatCategory.JAVASCRIPT_PROTOCOL,
        "JavaScript protocol injection detected",
        re.compile(r"javascript:", re.IGNORECASE),
    ),
    _pattern_stage(
        ThreatCategory.DATA_PROTOCOL,
        "Data protocol injection detected",
        re.compile(r"data:", re.IGNORECASE),
    ),
    _pattern_stage(
        ThreatCategory.VBSCRIPT_PROTOCOL,
        "VBScript protocol injection detected",
        re.compile(r"vbscript:", re.IGNORECASE),
    ),
    _pattern_stage(
        ThreatCategory.HTML_TAG,
        "HTML tag injection detected",
        re.compile(r"</?[a-zA-Z][^>]*>"),
    ),
    _pattern_stage(
        ThreatCategory.COMMAND_INJECTION,
        "Command injection attempt detected",
        re.compile(r"[;&|`$\[\]{}]"),
    ),
    _pattern_stage(
        ThreatCategory.SQL_INJECTION,
        "SQL injection pattern detected",
        re.compile(
            r"\b(?:union|select|insert|update|delete|drop|create|alter|exec|execute"
            r"|script|javascript|vbscript|onload|onerror|onclick)\b",
            re.IGNORECASE,
        ),
    ),
    _pattern_stage(
        ThreatCategory.URL_INJECTION,
        "URL injection attempt detected",
        re.compile(r"(?:https?://|ftp://|file://)", re.IGNORECASE),
    ),
    _pattern_stage(
        ThreatCategory.PATH_TRAVERSAL,
        "File path traversal attempt detected",
        re.compile(r"\.\./|\.\.\\"),
    ),
    # Flagged but never truncated; the caller decides what to do.
    ThreatStage(
        category=ThreatCategory.OVERSIZED_INPUT,
        description="Input too long (potential DoS)",
        detect=lambda text: len(text) > MAX_INPUT_LENGTH,
    ),
    ThreatStage(
        category=ThreatCategory.NULL_BYTE,
        description="Null byte injection detected",
        detect=lambda text: "\0" in text,
        remove=re.compile("\0"),
    ),
    _pattern_stage(
        ThreatCategory.CONTROL_CHARACTERS,
        "Control characters detected",
        _CONTROL_CHARS,
    ),
)

WARNING_CHECKS: tuple[WarningCheck, ...] = (
    WarningCheck(
        WarningCategory.ENCODING,
        "Potential encoding attempt detected",
        re.compile(r"%[0-9a-fA-F]{2}|\\x[0-9a-fA-F]{2}|\\u[0-9a-fA-F]{4}"),
    ),
    WarningCheck(
        WarningCategory.UNUSUAL_CHARACTERS,
        "Unusual characters detected",
        re.compile(r"[^\x20-\x7E\n\r\t]"),
    ),
    WarningCheck(
        WarningCategory.REPEATED_CHARACTERS,
        "Excessive repeated characters detected",
        re.compile(r"(.)\1{10,}"),
    ),
)


def check_input_security(text: str) -> SecurityCheckResult:
    """Classify ``text`` and return a sanitized copy with its threats and warnings.

    Pure and total: never raises, performs no I/O.
    """
    original = text if isinstance(text, str) else ""

    sanitized = original
    threats: list[str] = []
    for stage in THREAT_STAGES:
        sanitized, threat = stage(original, sanitized)
        if threat is not None:
            threats.append(threat)

    warnings = [check.description for check in WARNING_CHECKS if check.pattern.search(original)]

    return SecurityCheckResult(
        sanitized_input=sanitized.strip(),
        threats=threats,
        warnings=warnings,
    )


def count_high_risk_threats(threats: list[str]) -> int:
    """Count threat descriptions naming an injection, script or command."""
    return sum(1 for t in threats if any(marker in t for marker in HIGH_RISK_MARKERS))


def should_rate_limit_by_threats(threats: list[str]) -> bool:
    """Return True when a caller should be blocked outright for its input."""
    return count_high_risk_threats(threats) >= HIGH_RISK_THRESHOLD
