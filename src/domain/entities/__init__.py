"""
Access Control Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import SessionAuditEventType, UserRole

# Export all entities
from .user import User
from .refresh_session import RefreshSession
from .session_audit_event import SessionAuditEvent
from .security_metric_snapshot import SecurityMetricSnapshot

__all__ = [
    # Enums
    "UserRole",
    "SessionAuditEventType",
    # Entities
    "User",
    "RefreshSession",
    "SessionAuditEvent",
    "SecurityMetricSnapshot",
]
