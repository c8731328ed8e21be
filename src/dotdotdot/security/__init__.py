"""Request security: input classification, CSRF tokens and origin checks.

Public API
----------
- :func:`check_input_security`: classify and sanitize untrusted text
- :func:`should_rate_limit_by_threats`: escalation policy for repeat offenders
- :class:`SecurityCheckResult`: classifier result
- :class:`CSRFTokenService`: stateless HMAC-signed CSRF tokens
- :func:`check_origin`: origin/referer allow-list
- :func:`log_security_event`: forensic security logging
"""

from dotdotdot.security.classifier import (
    check_input_security,
    count_high_risk_threats,
    should_rate_limit_by_threats,
)
from dotdotdot.security.csrf import CSRFTokenService
from dotdotdot.security.forensics import log_security_event
from dotdotdot.security.models import SecurityCheckResult, ThreatCategory, WarningCategory
from dotdotdot.security.origin import check_origin

__all__ = [
    "CSRFTokenService",
    "SecurityCheckResult",
    "ThreatCategory",
    "WarningCategory",
    "check_input_security",
    "check_origin",
    "count_high_risk_threats",
    "log_security_event",
    "should_rate_limit_by_threats",
]
