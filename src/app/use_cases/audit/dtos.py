"""
Audit Use Case DTOs (Data Transfer Objects)

Response classes for session audit investigation and export.
"""

from typing import List, Optional

from src.app.use_cases.base_dto import CamelModel
from src.domain.base import isoformat_utc
from src.domain.entities import SessionAuditEvent


class AuditEventRow(CamelModel):
    """One audit event as returned to the security panel"""

    id: str
    created_at: str
    event_type: str
    success: bool
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    session_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_entity(cls, event: SessionAuditEvent) -> "AuditEventRow":
        return cls(
            id=str(event.id),
            created_at=isoformat_utc(event.created_at),
            event_type=event.event_type,
            success=event.success,
            user_id=str(event.user_id) if event.user_id else None,
            user_email=event.user_email,
            session_id=event.session_id,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            details=event.details,
        )


class AuditSummary(CamelModel):
    """Counts over the whole filtered set, not just the page"""

    total: int
    success: int
    failure: int
    login_failure: int


class AuditEventsPage(CamelModel):
    """Response for the paginated audit query"""

    data: List[AuditEventRow]
    count: int
    page: int
    limit: int
    sort_by: str
    sort_order: str
    summary: AuditSummary


class AuditExportMeta(CamelModel):
    """Export sizing, reported before rows are materialized"""

    count: int
    requested_limit: int
    max_limit: int
    effective_limit: int
    truncated: bool
