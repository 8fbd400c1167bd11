from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from src.domain.entities import RefreshSession


class IRefreshSessionRepository(ABC):
    """RefreshSession repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[RefreshSession]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshSession]:
        """Get session by the SHA-256 hash of its refresh secret"""
        pass

    @abstractmethod
    async def create(self, session: RefreshSession) -> RefreshSession:
        """Create a new session"""
        pass

    @abstractmethod
    async def list_active_by_user(self, user_id: UUID, now: datetime) -> List[RefreshSession]:
        """Active sessions for a user, newest first"""
        pass

    @abstractmethod
    async def revoke_if_active(
        self,
        session_id: UUID,
        now: datetime,
        replaced_by_token_hash: Optional[str] = None,
    ) -> bool:
        """
        Revoke a session only if it is still active.

        Single conditional UPDATE: returns False when another request already
        revoked it or it expired in the meantime.
        """
        pass

    @abstractmethod
    async def revoke_if_unrevoked(self, session_id: UUID, now: datetime) -> bool:
        """Revoke a session unless already revoked. Returns True if a row changed."""
        pass

    @abstractmethod
    async def revoke_many(self, session_ids: Sequence[UUID], now: datetime) -> int:
        """Revoke the given sessions in one statement. Returns count."""
        pass

    @abstractmethod
    async def revoke_all_active_by_user(self, user_id: UUID, now: datetime) -> int:
        """Revoke every active session of a user. Returns count."""
        pass

    @abstractmethod
    async def revoke_by_token_hash(self, token_hash: str, now: datetime) -> int:
        """Revoke the unrevoked session holding this token hash. Returns count."""
        pass
