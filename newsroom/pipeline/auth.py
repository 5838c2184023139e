"""
Shared-secret authentication for the pipeline endpoints.

The caller's secret comes from the ``x-cron-secret`` header or, failing
that, an ``Authorization: Bearer <secret>`` header.  Both sides are trimmed
and stripped of one pair of matching surrounding quotes before an exact
(constant-time) comparison.

An unconfigured server secret fails closed with ``ConfigurationError``
(HTTP 500), never with a 401.
"""

from __future__ import annotations

import hmac
import re
from typing import Optional

from newsroom.errors import AuthError, ConfigurationError

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)
_QUOTES = ('"', "'")


def normalize_secret(value: Optional[str]) -> Optional[str]:
    """Trim and strip one pair of matching quotes; empty becomes ``None``."""
    if value is None:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        value = value[1:-1].strip()
    return value or None


def extract_provided_secret(
    cron_secret_header: Optional[str],
    authorization_header: Optional[str],
) -> Optional[str]:
    if cron_secret_header and cron_secret_header.strip():
        return cron_secret_header
    if not authorization_header:
        return None
    match = _BEARER_RE.match(authorization_header.strip())
    return match.group(1) if match else None


def verify_secret(expected: Optional[str], provided: Optional[str]) -> None:
    """Raise unless ``provided`` matches the configured ``expected`` secret.

    Raises:
        ConfigurationError: No secret is configured server-side.
        AuthError: Missing or mismatched caller secret.
    """
    expected_norm = normalize_secret(expected)
    if expected_norm is None:
        raise ConfigurationError("CRON_SECRET is not configured")

    provided_norm = normalize_secret(provided)
    if provided_norm is None or not hmac.compare_digest(
        provided_norm.encode("utf-8"), expected_norm.encode("utf-8")
    ):
        raise AuthError("Unauthorized")
