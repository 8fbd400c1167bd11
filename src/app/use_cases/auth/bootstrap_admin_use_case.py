"""
Bootstrap Admin Use Case

Creates the first admin account, or promotes an existing user.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.base_dto import CamelModel
from src.domain.entities import User, UserRole

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class BootstrapAdminResponse(CamelModel):
    user_id: str
    email: str
    status: str  # created, promoted or already_admin


class BootstrapAdminUseCase:
    """
    Business Rules:
    - An existing admin is left untouched (password is not reset)
    - An existing operator is promoted to admin
    - New accounts get a bcrypt hash with cost factor 12
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, email: str, password: str, name: Optional[str] = None
    ) -> Result[BootstrapAdminResponse]:
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            return Return.err(Error("VALIDATION_ERROR", "A valid email is required"))
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            return Return.err(
                Error(
                    "VALIDATION_ERROR",
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                )
            )

        async with self.uow:
            try:
                user = await self.uow.users.get_by_email(email)
                if user is not None and user.role == UserRole.admin:
                    return Return.ok(
                        BootstrapAdminResponse(
                            user_id=str(user.id), email=user.email, status="already_admin"
                        )
                    )

                if user is not None:
                    user.role = UserRole.admin
                    user = await self.uow.users.update(user)
                    status = "promoted"
                else:
                    password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt(12))
                    user = await self.uow.users.create(
                        User(
                            email=email,
                            name=name or "",
                            password_hash=password_hash.decode(),
                            role=UserRole.admin,
                        )
                    )
                    status = "created"

                response = BootstrapAdminResponse(
                    user_id=str(user.id), email=user.email, status=status
                )
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Admin bootstrap failed for %s", email)
                await self.uow.rollback()
                return Return.err(Error("STORE_ERROR", "User store unavailable"))

        logger.info("Admin %s: %s", response.status, email)
        return Return.ok(response)
