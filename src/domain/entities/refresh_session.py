"""
RefreshSession Entity

Stores issued refresh tokens, one row per sign-in or rotation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class RefreshSession(SQLModel, table=True):
    """
    RefreshSession entity - one long-lived refresh credential.

    Business Rules:
    - Only the SHA-256 hash of the refresh secret is stored
    - Active iff revoked_at is null and expires_at > now
    - Rotation revokes the row and issues a new one
    - Rows are kept after revocation for audit correlation
    """

    __tablename__ = "refresh_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    token_hash: str = Field(max_length=64, unique=True, index=True)  # SHA-256 hex
    replaced_by_token_hash: Optional[str] = Field(default=None, max_length=64)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime)
    )
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_refresh_session_expires_at", "expires_at"),
        Index("idx_refresh_session_user_created", "user_id", "created_at"),
    )

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and self.expires_at > now
