"""
Use Cases

Organized by domain folder:
- auth/: Login
- sessions/: Refresh session lifecycle and cap
- audit/: Session audit investigation and export
- metrics/: Security metrics, snapshots and retention
"""

from .auth import LoginUseCase
from .sessions import SessionManager
from .audit import ExportAuditEventsUseCase, QueryAuditEventsUseCase
from .metrics import SecurityMetricsAggregator, SecurityMetricsSnapshotService

__all__ = [
    # Auth
    "LoginUseCase",
    # Sessions
    "SessionManager",
    # Audit
    "QueryAuditEventsUseCase",
    "ExportAuditEventsUseCase",
    # Metrics
    "SecurityMetricsAggregator",
    "SecurityMetricsSnapshotService",
]
