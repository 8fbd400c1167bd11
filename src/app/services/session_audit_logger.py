"""
Session Audit Logger

Best-effort writer for the session audit log.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from config import ApplicationConfig
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import SessionAuditEvent
from src.domain.entities.session_audit_event import DETAILS_MAX_LENGTH, USER_AGENT_MAX_LENGTH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientContext:
    """Request origin recorded with every audit event"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def _truncate(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None:
        return None
    return value[:max_length]


class SessionAuditLogger:
    """
    Appends SessionAuditEvent rows in their own commit.

    Business Rules:
    - Called after the primary operation has committed (or rolled back)
    - A failed or slow write is logged and suppressed, never raised
    - user_agent and details are truncated before the row is built
    """

    def __init__(
        self,
        uow: UnitOfWork,
        timeout_seconds: Optional[float] = None,
        clock=utc_now,
    ):
        self.uow = uow
        self.timeout_seconds = timeout_seconds or ApplicationConfig.AUDIT_WRITE_TIMEOUT_SECONDS
        self.clock = clock

    async def record(
        self,
        event_type: str,
        success: bool,
        client: Optional[ClientContext] = None,
        user_id: Optional[UUID] = None,
        user_email: Optional[str] = None,
        session_id: Optional[str] = None,
        details: Optional[str] = None,
    ) -> bool:
        """
        Append one audit event. Must be called inside an entered unit of work.

        Returns:
            True if the event was committed, False if the write failed
        """
        client = client or ClientContext()
        event = SessionAuditEvent(
            event_type=event_type,
            success=success,
            user_id=user_id,
            user_email=user_email,
            session_id=str(session_id) if session_id is not None else None,
            ip_address=client.ip_address,
            user_agent=_truncate(client.user_agent, USER_AGENT_MAX_LENGTH),
            details=_truncate(details, DETAILS_MAX_LENGTH),
            created_at=self.clock(),
        )

        try:
            await asyncio.wait_for(self._write(event), timeout=self.timeout_seconds)
            return True
        except Exception:
            logger.exception(
                "Session audit log error: event_type=%s success=%s", event_type, success
            )
            await self._safe_rollback()
            return False

    async def _write(self, event: SessionAuditEvent):
        await self.uow.session_audit_events.create(event)
        await self.uow.commit()

    async def _safe_rollback(self):
        try:
            await self.uow.rollback()
        except Exception:
            logger.exception("Session audit rollback failed")
