"""
Session Manager

Issues, rotates and revokes refresh sessions and enforces the per-user
active session cap.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from config import ApplicationConfig
from libs.result import Error, Result, Return
from src.api.utils.jwt import generate_access_token
from src.app.services.refresh_tokens import (
    generate_refresh_token,
    hash_refresh_token,
    parse_duration,
)
from src.app.services.session_audit_logger import ClientContext, SessionAuditLogger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import isoformat_utc, utc_now
from src.domain.entities import RefreshSession, SessionAuditEventType, User
from .dtos import (
    ActiveSessionInfo,
    ActiveSessionsResponse,
    RevokeAllSessionsResponse,
    RevokeSessionResult,
    SessionTokens,
)

logger = logging.getLogger(__name__)

STORE_ERROR = Error("STORE_ERROR", "Session store unavailable")


class SessionManager:
    """
    Refresh session lifecycle.

    Business Rules:
    - Only the hash of a refresh secret is stored
    - A session is active iff revoked_at is null and expires_at > now
    - Every issuance keeps the N newest active sessions and revokes the rest
    - Rotation revokes the presented session and issues a new one in one commit
    - Each operation writes one audit event after its own commit; audit
      failures never change the operation's result
    """

    def __init__(
        self,
        uow: UnitOfWork,
        max_active_sessions: Optional[int] = None,
        refresh_token_ttl: Optional[str] = None,
        audit_logger: Optional[SessionAuditLogger] = None,
        clock=utc_now,
    ):
        self.uow = uow
        self.max_active_sessions = (
            max_active_sessions or ApplicationConfig.MAX_ACTIVE_REFRESH_SESSIONS
        )
        self.refresh_token_ttl = parse_duration(
            refresh_token_ttl or ApplicationConfig.REFRESH_TOKEN_EXPIRES_IN
        )
        self.clock = clock
        self.audit = audit_logger or SessionAuditLogger(uow, clock=clock)

    async def issue_session(
        self,
        user: User,
        client: Optional[ClientContext] = None,
        event_type: str = SessionAuditEventType.login.value,
    ) -> Result[SessionTokens]:
        """
        Issue a new refresh session and access token for an authenticated user.

        Args:
            user: Authenticated user
            client: Request origin for the audit trail
            event_type: Audit event type to record (login or refresh)

        Returns:
            Result with SessionTokens, or STORE_ERROR
        """
        user_id, user_email, role = user.id, user.email, _role_value(user)

        async with self.uow:
            try:
                now = self.clock()
                refresh_token, session = await self._create_session(user_id, now)
                evicted = await self._evict_excess_sessions(user_id, now, keep=session.id)
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Session issuance failed for user_id=%s", user_id)
                await self.uow.rollback()
                await self.audit.record(
                    event_type,
                    False,
                    client,
                    user_id=user_id,
                    user_email=user_email,
                    details="internal_error",
                )
                return Return.err(STORE_ERROR)

            tokens = self._tokens(user_id, user_email, role, session, refresh_token)
            await self.audit.record(
                event_type,
                True,
                client,
                user_id=user_id,
                user_email=user_email,
                session_id=tokens.session_id,
                details=f"evicted={evicted}" if evicted else None,
            )

        return Return.ok(tokens)

    async def rotate_session(
        self, presented_secret: Optional[str], client: Optional[ClientContext] = None
    ) -> Result[SessionTokens]:
        """
        Exchange a refresh secret for a new one (refresh token rotation).

        The presented session is revoked with a conditional update in the same
        commit that creates its replacement, so a concurrent rotation of the
        same secret fails instead of producing a second live session.

        Returns:
            Result with SessionTokens, or Error:
            - VALIDATION_ERROR: no secret presented
            - INVALID_TOKEN: unknown secret or owner no longer exists
            - SESSION_REVOKED: session revoked (including a lost rotation race)
            - SESSION_EXPIRED: session expired
            - STORE_ERROR: persistence failure
        """
        refresh = SessionAuditEventType.refresh.value

        async with self.uow:
            if not presented_secret:
                await self.audit.record(
                    refresh, False, client, details="missing_refresh_token"
                )
                return Return.err(Error("VALIDATION_ERROR", "Refresh token is required"))

            try:
                now = self.clock()
                current = await self.uow.refresh_sessions.get_by_token_hash(
                    hash_refresh_token(presented_secret)
                )

                failure = self._inactive_reason(current, now)
                if failure is not None:
                    await self.audit.record(
                        refresh,
                        False,
                        client,
                        user_id=current.user_id if current else None,
                        session_id=str(current.id) if current else None,
                        details=failure[0],
                    )
                    return Return.err(failure[1])

                user = await self.uow.users.get_by_id(current.user_id)
                if user is None:
                    await self.audit.record(
                        refresh,
                        False,
                        client,
                        user_id=current.user_id,
                        session_id=str(current.id),
                        details="user_not_found",
                    )
                    return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))

                user_id, user_email, role = user.id, user.email, _role_value(user)
                current_id = current.id
                next_token = generate_refresh_token()
                revoked = await self.uow.refresh_sessions.revoke_if_active(
                    current_id, now, replaced_by_token_hash=hash_refresh_token(next_token)
                )
                if not revoked:
                    await self.uow.rollback()
                    await self.audit.record(
                        refresh,
                        False,
                        client,
                        user_id=user_id,
                        user_email=user_email,
                        session_id=str(current_id),
                        details="concurrent_rotation",
                    )
                    return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))

                next_session = await self._store_session(user_id, next_token, now)
                await self._evict_excess_sessions(user_id, now, keep=next_session.id)
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Session rotation failed")
                await self.uow.rollback()
                await self.audit.record(refresh, False, client, details="internal_error")
                return Return.err(STORE_ERROR)

            tokens = self._tokens(user_id, user_email, role, next_session, next_token)
            await self.audit.record(
                refresh,
                True,
                client,
                user_id=user_id,
                user_email=user_email,
                session_id=tokens.session_id,
                details=f"replaced_session={current_id}",
            )

        return Return.ok(tokens)

    async def revoke_session(
        self,
        session_id: UUID,
        owner_user_id: UUID,
        owner_email: Optional[str] = None,
        client: Optional[ClientContext] = None,
    ) -> Result[RevokeSessionResult]:
        """
        Revoke one session owned by the caller.

        Revoking an already revoked session is an idempotent success with
        revoked=False.

        Returns:
            Result with RevokeSessionResult, or Error:
            - SESSION_NOT_FOUND: no such session
            - FORBIDDEN: session belongs to another user
            - STORE_ERROR: persistence failure
        """
        revoke = SessionAuditEventType.revoke_session.value

        async with self.uow:
            try:
                session = await self.uow.refresh_sessions.get_by_id(session_id)
                if session is None:
                    await self.audit.record(
                        revoke,
                        False,
                        client,
                        user_id=owner_user_id,
                        user_email=owner_email,
                        session_id=str(session_id),
                        details="session_not_found",
                    )
                    return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

                if session.user_id != owner_user_id:
                    await self.audit.record(
                        revoke,
                        False,
                        client,
                        user_id=owner_user_id,
                        user_email=owner_email,
                        session_id=str(session_id),
                        details="forbidden",
                    )
                    return Return.err(
                        Error("FORBIDDEN", "Session does not belong to current user")
                    )

                revoked = await self.uow.refresh_sessions.revoke_if_unrevoked(
                    session_id, self.clock()
                )
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Session revoke failed for session_id=%s", session_id)
                await self.uow.rollback()
                await self.audit.record(
                    revoke,
                    False,
                    client,
                    user_id=owner_user_id,
                    user_email=owner_email,
                    session_id=str(session_id),
                    details="internal_error",
                )
                return Return.err(STORE_ERROR)

            await self.audit.record(
                revoke,
                True,
                client,
                user_id=owner_user_id,
                user_email=owner_email,
                session_id=str(session_id),
                details="revoked" if revoked else "already_revoked",
            )

        return Return.ok(RevokeSessionResult(session_id=str(session_id), revoked=revoked))

    async def revoke_by_refresh_token(
        self, presented_secret: Optional[str], client: Optional[ClientContext] = None
    ) -> Result[bool]:
        """
        Logout: revoke the session holding this refresh secret.

        Unknown or already revoked secrets are not an error.

        Returns:
            Result with True if a session was revoked, or VALIDATION_ERROR / STORE_ERROR
        """
        logout = SessionAuditEventType.logout.value

        async with self.uow:
            if not presented_secret:
                await self.audit.record(logout, False, client, details="missing_refresh_token")
                return Return.err(Error("VALIDATION_ERROR", "Refresh token is required"))

            try:
                token_hash = hash_refresh_token(presented_secret)
                existing = await self.uow.refresh_sessions.get_by_token_hash(token_hash)
                count = await self.uow.refresh_sessions.revoke_by_token_hash(
                    token_hash, self.clock()
                )
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Logout failed")
                await self.uow.rollback()
                await self.audit.record(logout, False, client, details="internal_error")
                return Return.err(STORE_ERROR)

            await self.audit.record(
                logout,
                count > 0,
                client,
                user_id=existing.user_id if existing else None,
                session_id=str(existing.id) if existing else None,
                details="revoked" if count > 0 else "already_revoked_or_not_found",
            )

        return Return.ok(count > 0)

    async def revoke_all_sessions(
        self,
        user_id: UUID,
        user_email: Optional[str] = None,
        client: Optional[ClientContext] = None,
    ) -> Result[RevokeAllSessionsResponse]:
        """
        Logout everywhere: revoke every active session of the user.

        Zero revoked sessions is a valid success.
        """
        logout_all = SessionAuditEventType.logout_all.value

        async with self.uow:
            try:
                count = await self.uow.refresh_sessions.revoke_all_active_by_user(
                    user_id, self.clock()
                )
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Logout-all failed for user_id=%s", user_id)
                await self.uow.rollback()
                await self.audit.record(
                    logout_all,
                    False,
                    client,
                    user_id=user_id,
                    user_email=user_email,
                    details="internal_error",
                )
                return Return.err(STORE_ERROR)

            await self.audit.record(
                logout_all,
                True,
                client,
                user_id=user_id,
                user_email=user_email,
                details=f"revoked={count}",
            )

        return Return.ok(RevokeAllSessionsResponse(revoked_sessions=count))

    async def list_active_sessions(
        self,
        user_id: UUID,
        user_email: Optional[str] = None,
        client: Optional[ClientContext] = None,
    ) -> Result[ActiveSessionsResponse]:
        """Active sessions of the user, newest first."""
        list_sessions = SessionAuditEventType.list_sessions.value

        async with self.uow:
            try:
                sessions = await self.uow.refresh_sessions.list_active_by_user(
                    user_id, self.clock()
                )
            except SQLAlchemyError:
                logger.exception("Listing sessions failed for user_id=%s", user_id)
                await self.uow.rollback()
                await self.audit.record(
                    list_sessions,
                    False,
                    client,
                    user_id=user_id,
                    user_email=user_email,
                    details="internal_error",
                )
                return Return.err(STORE_ERROR)

            data = [
                ActiveSessionInfo(
                    id=str(s.id),
                    created_at=isoformat_utc(s.created_at),
                    expires_at=isoformat_utc(s.expires_at),
                )
                for s in sessions
            ]
            await self.audit.record(
                list_sessions,
                True,
                client,
                user_id=user_id,
                user_email=user_email,
                details=f"count={len(data)}",
            )

        return Return.ok(
            ActiveSessionsResponse(
                data=data, count=len(data), max_active_sessions=self.max_active_sessions
            )
        )

    async def enforce_session_cap(self, user_id: UUID) -> Result[int]:
        """
        Keep the configured number of newest active sessions, revoke the rest.

        Returns:
            Result with the number of evicted sessions
        """
        async with self.uow:
            try:
                evicted = await self._evict_excess_sessions(user_id, self.clock())
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Session cap enforcement failed for user_id=%s", user_id)
                await self.uow.rollback()
                return Return.err(STORE_ERROR)

        return Return.ok(evicted)

    async def _create_session(self, user_id: UUID, now: datetime) -> Tuple[str, RefreshSession]:
        refresh_token = generate_refresh_token()
        session = await self._store_session(user_id, refresh_token, now)
        return refresh_token, session

    async def _store_session(
        self, user_id: UUID, refresh_token: str, now: datetime
    ) -> RefreshSession:
        session = RefreshSession(
            user_id=user_id,
            token_hash=hash_refresh_token(refresh_token),
            created_at=now,
            expires_at=now + self.refresh_token_ttl,
        )
        return await self.uow.refresh_sessions.create(session)

    async def _evict_excess_sessions(
        self, user_id: UUID, now: datetime, keep: Optional[UUID] = None
    ) -> int:
        active = await self.uow.refresh_sessions.list_active_by_user(user_id, now)
        if keep is not None:
            # the session just issued always survives, even on created_at ties
            active = [s for s in active if s.id == keep] + [s for s in active if s.id != keep]

        if len(active) <= self.max_active_sessions:
            return 0

        excess: List[UUID] = [s.id for s in active[self.max_active_sessions:]]
        evicted = await self.uow.refresh_sessions.revoke_many(excess, now)
        logger.info("Evicted %s session(s) for user_id=%s", evicted, user_id)
        return evicted

    @staticmethod
    def _inactive_reason(
        session: Optional[RefreshSession], now: datetime
    ) -> Optional[Tuple[str, Error]]:
        if session is None:
            return "invalid_refresh_token", Error("INVALID_TOKEN", "Invalid refresh token")
        if session.revoked_at is not None:
            return "session_revoked", Error("SESSION_REVOKED", "Session has been revoked")
        if session.expires_at <= now:
            return "session_expired", Error("SESSION_EXPIRED", "Session has expired")
        return None

    @staticmethod
    def _tokens(
        user_id: UUID,
        user_email: str,
        role: str,
        session: RefreshSession,
        refresh_token: str,
    ) -> SessionTokens:
        return SessionTokens(
            access_token=generate_access_token(user_id, user_email, role, session.id),
            refresh_token=refresh_token,
            session_id=str(session.id),
            expires_at=isoformat_utc(session.expires_at),
        )


def _role_value(user: User) -> str:
    return user.role.value if hasattr(user.role, "value") else str(user.role)
