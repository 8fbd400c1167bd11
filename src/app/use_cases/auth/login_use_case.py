"""
Login Use Case

Handles user authentication and issues a refresh session plus access token.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from libs.result import Error, Result, Return
from src.app.services.session_audit_logger import ClientContext, SessionAuditLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import LoginResponse, SessionManager, UserInfo
from src.domain.entities import SessionAuditEventType

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - Every attempt writes a login audit event, including failures for
      unknown emails (attempted email and IP are kept)
    - Success issues a refresh session through the SessionManager, which
      also enforces the active session cap
    """

    def __init__(self, uow: UnitOfWork, session_manager: Optional[SessionManager] = None):
        self.uow = uow
        self.session_manager = session_manager or SessionManager(uow)
        self.audit = SessionAuditLogger(uow)

    async def execute(
        self,
        email: Optional[str],
        password: Optional[str],
        client: Optional[ClientContext] = None,
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password
            client: Request origin for the audit trail

        Returns:
            Result with LoginResponse containing tokens and user info, or Error
        """
        login = SessionAuditEventType.login.value

        async with self.uow:
            if not email or not password:
                await self.audit.record(
                    login, False, client, user_email=email or None, details="missing_credentials"
                )
                return Return.err(Error("VALIDATION_ERROR", "Email and password are required"))

            try:
                user = await self.uow.users.get_by_email(email.strip().lower())
            except SQLAlchemyError:
                logger.exception("User lookup failed during login")
                await self.uow.rollback()
                await self.audit.record(
                    login, False, client, user_email=email, details="internal_error"
                )
                return Return.err(Error("STORE_ERROR", "Session store unavailable"))

            # Constant-time password verification (prevent timing attacks)
            # Always perform hash check even if user not found
            if user is None:
                bcrypt.checkpw(b"dummy_password", bcrypt.gensalt(12))
                await self.audit.record(
                    login, False, client, user_email=email, details="user_not_found"
                )
                return Return.err(Error("INVALID_CREDENTIALS", "Invalid email or password"))

            if not bcrypt.checkpw(password.encode(), user.password_hash.encode()):
                await self.audit.record(
                    login,
                    False,
                    client,
                    user_id=user.id,
                    user_email=user.email,
                    details="invalid_password",
                )
                return Return.err(Error("INVALID_CREDENTIALS", "Invalid email or password"))

            user_info = UserInfo(
                id=str(user.id),
                email=user.email,
                name=user.name,
                role=user.role.value if hasattr(user.role, "value") else str(user.role),
            )
            result = await self.session_manager.issue_session(user, client)

        if result.is_err():
            return result

        return Return.ok(LoginResponse(**result.value.model_dump(), user=user_info))
