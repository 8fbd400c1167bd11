"""
SessionAuditEvent Entity

Append-only log of authentication and session events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now

USER_AGENT_MAX_LENGTH = 500
DETAILS_MAX_LENGTH = 1000


class SessionAuditEvent(SQLModel, table=True):
    """
    SessionAuditEvent entity - immutable record of one authentication action.

    Business Rules:
    - Immutable (never updated), deleted only by retention pruning
    - user_email is denormalized for filtering and metrics
    - user_agent and details are truncated at write time
    - Source of the windowed security metrics
    """

    __tablename__ = "session_audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    event_type: str = Field(max_length=50)  # see SessionAuditEventType
    success: bool

    user_id: Optional[UUID] = Field(default=None)
    user_email: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=64)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=USER_AGENT_MAX_LENGTH)
    details: Optional[str] = Field(default=None, max_length=DETAILS_MAX_LENGTH)

    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_session_audit_created_at", "created_at"),
        Index("idx_session_audit_type_created", "event_type", "created_at"),
        Index("idx_session_audit_user_email", "user_email"),
        Index("idx_session_audit_ip_address", "ip_address"),
    )
