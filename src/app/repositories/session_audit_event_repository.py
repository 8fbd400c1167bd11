from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from src.domain.entities import SessionAuditEvent


@dataclass(frozen=True)
class AuditEventFilters:
    """Validated audit log filters. None means "not filtered"."""

    user_email: Optional[str] = None
    event_type: Optional[str] = None
    success: Optional[bool] = None
    ip_address: Optional[str] = None
    session_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class ISessionAuditEventRepository(ABC):
    """SessionAuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, event: SessionAuditEvent) -> SessionAuditEvent:
        """Append a new audit event (immutable)"""
        pass

    @abstractmethod
    async def find(
        self,
        filters: AuditEventFilters,
        sort_by: str,
        sort_order: str,
        offset: int,
        limit: int,
    ) -> List[SessionAuditEvent]:
        """
        Filtered, sorted page of audit events.

        sort_by is one of the allow-listed attribute names
        (created_at, event_type, success, user_email, ip_address).
        """
        pass

    @abstractmethod
    async def count(self, filters: AuditEventFilters) -> int:
        """Count audit events matching filters"""
        pass

    @abstractmethod
    async def count_all(self) -> int:
        """Count every stored audit event"""
        pass

    @abstractmethod
    async def count_logins(
        self, start: datetime, end: datetime, failed_only: bool = False
    ) -> int:
        """Count login events with start <= created_at <= end"""
        pass

    @abstractmethod
    async def group_logins_by(
        self, key: str, start: datetime, end: datetime, failed_only: bool = False
    ) -> List[Tuple[str, int]]:
        """
        Login event counts grouped by key ("ip_address" or "user_email").

        Null keys are excluded. Ordered by count desc, then key asc.
        """
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete events with created_at strictly before cutoff. Returns count."""
        pass
