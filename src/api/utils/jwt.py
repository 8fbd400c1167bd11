from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig
from src.app.services.refresh_tokens import parse_duration

DEFAULT_ACCESS_TOKEN_TTL = timedelta(days=1)


def generate_access_token(
    user_id: UUID,
    email: str,
    role: str,
    session_id: Optional[UUID] = None,
    expires_in: Optional[str] = None,
) -> str:
    """
    Generate JWT access token

    Args:
        user_id: User UUID
        email: User email
        role: User role (admin, operator)
        session_id: Refresh session the token was issued from
        expires_in: Duration string such as "15m" or "1d"

    Returns:
        JWT token string (HS256)
    """
    ttl = parse_duration(expires_in or ApplicationConfig.JWT_EXPIRES_IN, DEFAULT_ACCESS_TOKEN_TTL)
    now = datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "email": email,
        "role": role,
        "exp": now + ttl,
        "iat": now,
    }
    if session_id is not None:
        payload["sid"] = str(session_id)
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
