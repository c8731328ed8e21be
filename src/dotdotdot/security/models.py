"""Data models for input security checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ThreatCategory(StrEnum):
    """Categories that make an input unsafe."""

    SCRIPT_TAG = "script_tag"
    JAVASCRIPT_PROTOCOL = "javascript_protocol"
    DATA_PROTOCOL = "data_protocol"
    VBSCRIPT_PROTOCOL = "vbscript_protocol"
    HTML_TAG = "html_tag"
    COMMAND_INJECTION = "command_injection"
    SQL_INJECTION = "sql_injection"
    URL_INJECTION = "url_injection"
    PATH_TRAVERSAL = "path_traversal"
    OVERSIZED_INPUT = "oversized_input"
    NULL_BYTE = "null_byte"
    CONTROL_CHARACTERS = "control_characters"


class WarningCategory(StrEnum):
    """Low-confidence signals that never block on their own."""

    ENCODING = "encoding"
    UNUSUAL_CHARACTERS = "unusual_characters"
    REPEATED_CHARACTERS = "repeated_characters"


@dataclass(frozen=True)
class SecurityCheckResult:
    """Outcome of checking one input.

    ``threats`` and ``warnings`` hold human-readable descriptions in
    detection order. ``sanitized_input`` is the original text with every
    matched threat span removed, then trimmed.
    """

    sanitized_input: str
    threats: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_safe(self) -> bool:
        """True when no threats were detected."""
        return not self.threats

    def to_dict(self) -> dict[str, object]:
        """Serialise for logging or JSON responses."""
        return {
            "isSafe": self.is_safe,
            "threats": list(self.threats),
            "warnings": list(self.warnings),
            "sanitizedInput": self.sanitized_input,
        }
