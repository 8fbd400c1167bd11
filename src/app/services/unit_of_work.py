from abc import ABC, abstractmethod

from src.app.repositories.refresh_session_repository import IRefreshSessionRepository
from src.app.repositories.security_metric_snapshot_repository import (
    ISecurityMetricSnapshotRepository,
)
from src.app.repositories.session_audit_event_repository import ISessionAuditEventRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    refresh_sessions: IRefreshSessionRepository
    session_audit_events: ISessionAuditEventRepository
    security_metric_snapshots: ISecurityMetricSnapshotRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
