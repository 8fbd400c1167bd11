from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.refresh_session_repository import IRefreshSessionRepository
from src.domain.entities import RefreshSession


class RefreshSessionRepository(IRefreshSessionRepository):
    """RefreshSession repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[RefreshSession]:
        """Get session by ID"""
        stmt = select(RefreshSession).where(RefreshSession.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshSession]:
        """Get session by token hash (unique index, O(1) lookup)"""
        stmt = select(RefreshSession).where(RefreshSession.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, session_obj: RefreshSession) -> RefreshSession:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def list_active_by_user(self, user_id: UUID, now: datetime) -> List[RefreshSession]:
        """Active sessions for a user, newest first"""
        stmt = (
            select(RefreshSession)
            .where(
                RefreshSession.user_id == user_id,
                RefreshSession.revoked_at == None,  # noqa: E711
                RefreshSession.expires_at > now,
            )
            .order_by(RefreshSession.created_at.desc(), RefreshSession.id.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def revoke_if_active(
        self,
        session_id: UUID,
        now: datetime,
        replaced_by_token_hash: Optional[str] = None,
    ) -> bool:
        """Revoke a session only if it is still active"""
        values = {"revoked_at": now}
        if replaced_by_token_hash is not None:
            values["replaced_by_token_hash"] = replaced_by_token_hash
        stmt = (
            update(RefreshSession)
            .where(
                RefreshSession.id == session_id,
                RefreshSession.revoked_at == None,  # noqa: E711
                RefreshSession.expires_at > now,
            )
            .values(**values)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke_if_unrevoked(self, session_id: UUID, now: datetime) -> bool:
        """Revoke a session unless already revoked"""
        stmt = (
            update(RefreshSession)
            .where(
                RefreshSession.id == session_id,
                RefreshSession.revoked_at == None,  # noqa: E711
            )
            .values(revoked_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_many(self, session_ids: Sequence[UUID], now: datetime) -> int:
        """Revoke the given sessions in one statement"""
        if not session_ids:
            return 0
        stmt = (
            update(RefreshSession)
            .where(
                RefreshSession.id.in_(list(session_ids)),
                RefreshSession.revoked_at == None,  # noqa: E711
            )
            .values(revoked_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_all_active_by_user(self, user_id: UUID, now: datetime) -> int:
        """Revoke every active session of a user"""
        stmt = (
            update(RefreshSession)
            .where(
                RefreshSession.user_id == user_id,
                RefreshSession.revoked_at == None,  # noqa: E711
                RefreshSession.expires_at > now,
            )
            .values(revoked_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_by_token_hash(self, token_hash: str, now: datetime) -> int:
        """Revoke the unrevoked session holding this token hash"""
        stmt = (
            update(RefreshSession)
            .where(
                RefreshSession.token_hash == token_hash,
                RefreshSession.revoked_at == None,  # noqa: E711
            )
            .values(revoked_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
