"""
Refresh Token Primitives

Secret generation, one-way hashing and duration parsing for refresh sessions.
"""

import hashlib
import re
import secrets
from datetime import timedelta

REFRESH_TOKEN_BYTES = 48
DEFAULT_REFRESH_TOKEN_TTL = timedelta(days=7)

_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$", re.IGNORECASE)
_DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_duration(value, default: timedelta = DEFAULT_REFRESH_TOKEN_TTL) -> timedelta:
    """
    Parse "<integer>[smhd]" (e.g. "15m", "7d") into a timedelta.

    Anything else, including None, falls back to default.
    """
    if not isinstance(value, str):
        return default
    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        return default
    return int(match.group(1)) * _DURATION_UNITS[match.group(2).lower()]


def generate_refresh_token() -> str:
    """URL-safe secret carrying 48 random bytes."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def hash_refresh_token(refresh_token: str) -> str:
    """
    SHA-256 hex digest of the secret.

    Deterministic: sessions are looked up by this value.
    """
    return hashlib.sha256(refresh_token.encode()).hexdigest()
