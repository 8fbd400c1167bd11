"""
Session Use Cases

Refresh session lifecycle and per-user session cap.
"""

from .session_manager import SessionManager
from .dtos import (
    ActiveSessionInfo,
    ActiveSessionsResponse,
    LoginResponse,
    RevokeAllSessionsResponse,
    RevokeSessionResult,
    SessionTokens,
    UserInfo,
)

__all__ = [
    # Use Cases
    "SessionManager",
    # DTOs - Responses
    "SessionTokens",
    "LoginResponse",
    "ActiveSessionsResponse",
    "RevokeAllSessionsResponse",
    "RevokeSessionResult",
    # DTOs - Nested Models
    "ActiveSessionInfo",
    "UserInfo",
]
