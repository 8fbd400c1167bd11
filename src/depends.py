from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.session_audit_logger import ClientContext
from src.domain.entities import UserRole
from src.domain.entities.session_audit_event import USER_AGENT_MAX_LENGTH

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def init_db():
    """Create missing tables for every registered SQLModel entity."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id, email, role and sid

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Security panel endpoints are restricted to admins."""
    if current_user.get("role") != UserRole.admin.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return None


async def get_client_context(request: Request) -> ClientContext:
    """Client IP (first X-Forwarded-For hop, else peer) and truncated User-Agent."""
    user_agent = request.headers.get("user-agent")
    return ClientContext(
        ip_address=_client_ip(request),
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
    )
