from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.security_metric_snapshot_repository import (
    ISecurityMetricSnapshotRepository,
)
from src.domain.entities import SecurityMetricSnapshot


class SecurityMetricSnapshotRepository(ISecurityMetricSnapshotRepository):
    """SecurityMetricSnapshot repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, snapshot: SecurityMetricSnapshot) -> SecurityMetricSnapshot:
        """Persist a new snapshot"""
        self.session.add(snapshot)
        await self.session.flush()
        await self.session.refresh(snapshot)
        return snapshot

    async def list_recent(
        self,
        limit: int,
        window_hours: Optional[int] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[SecurityMetricSnapshot]:
        """Snapshots ordered by generated_at DESC (newest first)"""
        stmt = select(SecurityMetricSnapshot)
        if window_hours:
            stmt = stmt.where(SecurityMetricSnapshot.window_hours == window_hours)
        if start_time is not None:
            stmt = stmt.where(SecurityMetricSnapshot.generated_at >= start_time)
        if end_time is not None:
            stmt = stmt.where(SecurityMetricSnapshot.generated_at <= end_time)

        stmt = stmt.order_by(
            SecurityMetricSnapshot.generated_at.desc(), SecurityMetricSnapshot.id.desc()
        ).limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_all(self) -> int:
        """Count every stored snapshot"""
        stmt = select(func.count(SecurityMetricSnapshot.id))
        result = await self.session.exec(stmt)
        return result.one()

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete snapshots with generated_at < cutoff"""
        stmt = delete(SecurityMetricSnapshot).where(SecurityMetricSnapshot.generated_at < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
