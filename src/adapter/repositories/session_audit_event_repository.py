from datetime import datetime
from typing import List, Tuple

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_audit_event_repository import (
    AuditEventFilters,
    ISessionAuditEventRepository,
)
from src.domain.entities import SessionAuditEvent, SessionAuditEventType

GROUPABLE_COLUMNS = {
    "ip_address": SessionAuditEvent.ip_address,
    "user_email": SessionAuditEvent.user_email,
}


def _filter_conditions(filters: AuditEventFilters) -> list:
    conditions = []
    if filters.user_email:
        conditions.append(
            SessionAuditEvent.user_email.icontains(filters.user_email, autoescape=True)
        )
    if filters.event_type:
        conditions.append(SessionAuditEvent.event_type == filters.event_type)
    if filters.success is not None:
        conditions.append(SessionAuditEvent.success == filters.success)
    if filters.ip_address:
        conditions.append(
            SessionAuditEvent.ip_address.icontains(filters.ip_address, autoescape=True)
        )
    if filters.session_id:
        conditions.append(
            SessionAuditEvent.session_id.contains(filters.session_id, autoescape=True)
        )
    if filters.start_time is not None:
        conditions.append(SessionAuditEvent.created_at >= filters.start_time)
    if filters.end_time is not None:
        conditions.append(SessionAuditEvent.created_at <= filters.end_time)
    return conditions


def _login_conditions(start: datetime, end: datetime, failed_only: bool) -> list:
    conditions = [
        SessionAuditEvent.event_type == SessionAuditEventType.login.value,
        SessionAuditEvent.created_at >= start,
        SessionAuditEvent.created_at <= end,
    ]
    if failed_only:
        conditions.append(SessionAuditEvent.success == False)  # noqa: E712
    return conditions


class SessionAuditEventRepository(ISessionAuditEventRepository):
    """SessionAuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: SessionAuditEvent) -> SessionAuditEvent:
        """Append a new audit event (immutable)"""
        self.session.add(event)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def find(
        self,
        filters: AuditEventFilters,
        sort_by: str,
        sort_order: str,
        offset: int,
        limit: int,
    ) -> List[SessionAuditEvent]:
        """Filtered, sorted page of audit events"""
        column = getattr(SessionAuditEvent, sort_by)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        tiebreak = (
            SessionAuditEvent.id.asc() if sort_order == "asc" else SessionAuditEvent.id.desc()
        )

        stmt = (
            select(SessionAuditEvent)
            .where(*_filter_conditions(filters))
            .order_by(ordering, tiebreak)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count(self, filters: AuditEventFilters) -> int:
        """Count audit events matching filters"""
        stmt = select(func.count(SessionAuditEvent.id)).where(*_filter_conditions(filters))
        result = await self.session.exec(stmt)
        return result.one()

    async def count_all(self) -> int:
        """Count every stored audit event"""
        stmt = select(func.count(SessionAuditEvent.id))
        result = await self.session.exec(stmt)
        return result.one()

    async def count_logins(
        self, start: datetime, end: datetime, failed_only: bool = False
    ) -> int:
        """Count login events inside [start, end]"""
        stmt = select(func.count(SessionAuditEvent.id)).where(
            *_login_conditions(start, end, failed_only)
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def group_logins_by(
        self, key: str, start: datetime, end: datetime, failed_only: bool = False
    ) -> List[Tuple[str, int]]:
        """Login counts grouped by ip_address or user_email, nulls excluded"""
        column = GROUPABLE_COLUMNS[key]
        attempts = func.count(SessionAuditEvent.id)
        stmt = (
            select(column, attempts)
            .where(*_login_conditions(start, end, failed_only), column != None)  # noqa: E711
            .group_by(column)
            .order_by(attempts.desc(), column.asc())
        )
        result = await self.session.exec(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete events with created_at < cutoff"""
        stmt = delete(SessionAuditEvent).where(SessionAuditEvent.created_at < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
