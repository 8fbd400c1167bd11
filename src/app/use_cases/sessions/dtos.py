"""
Session Use Case DTOs (Data Transfer Objects)

Response classes for refresh session management.
"""

from typing import List

from src.app.use_cases.base_dto import CamelModel


class UserInfo(CamelModel):
    """Authenticated user in login responses"""

    id: str
    email: str
    name: str
    role: str


class SessionTokens(CamelModel):
    """Access/refresh token pair produced by issuance or rotation"""

    access_token: str
    refresh_token: str
    session_id: str
    expires_at: str


class LoginResponse(SessionTokens):
    """Response for user login use case"""

    user: UserInfo


class ActiveSessionInfo(CamelModel):
    """Active session metadata (never exposes the token hash)"""

    id: str
    created_at: str
    expires_at: str


class ActiveSessionsResponse(CamelModel):
    """Response for listing a user's active sessions"""

    data: List[ActiveSessionInfo]
    count: int
    max_active_sessions: int


class RevokeAllSessionsResponse(CamelModel):
    """Response for logout-all"""

    revoked_sessions: int


class RevokeSessionResult(CamelModel):
    """Result of revoking one session"""

    session_id: str
    revoked: bool
