from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.refresh_session_repository import RefreshSessionRepository
from src.adapter.repositories.security_metric_snapshot_repository import (
    SecurityMetricSnapshotRepository,
)
from src.adapter.repositories.session_audit_event_repository import SessionAuditEventRepository
from src.adapter.repositories.user_repository import UserRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.refresh_sessions = RefreshSessionRepository(self.session)
        self.session_audit_events = SessionAuditEventRepository(self.session)
        self.security_metric_snapshots = SecurityMetricSnapshotRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
