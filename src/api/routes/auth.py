from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field

from src.api.error import error_for
from src.app.services.session_audit_logger import ClientContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import LoginUseCase
from src.app.use_cases.sessions import (
    LoginResponse,
    RevokeAllSessionsResponse,
    SessionManager,
    SessionTokens,
)
from src.depends import get_client_context, get_current_user, get_unit_of_work

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Fields are optional here so that missing credentials still reach the
    use case and leave a login audit event.
    """

    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="User password")


class RefreshTokenRequest(BaseModel):
    """Refresh/logout payload; accepts snake_case or camelCase field names"""

    refresh_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
        description="Refresh token issued at login or last rotation",
    )


class LogoutResponse(BaseModel):
    success: bool


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """
    User Login

    Authenticates the user and issues a refresh session plus access token.
    Issuing a session beyond the per-user cap revokes the oldest active ones.

    Raises:
        - 400 Bad Request: Missing email or password
        - 401 Unauthorized: Invalid credentials
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(uow)
    result = await use_case.execute(request.email, request.password, client)

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=SessionTokens)
async def refresh_token(
    request: RefreshTokenRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """
    Refresh Token (rotation)

    The presented refresh token is revoked and a new pair is returned.

    Raises:
        - 400 Bad Request: No refresh token
        - 401 Unauthorized: Unknown, revoked or expired refresh token
        - 500 Internal Server Error: Server error
    """
    result = await SessionManager(uow).rotate_session(request.refresh_token, client)

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: RefreshTokenRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """
    Logout

    Revokes the session holding the refresh token. Unknown or already
    revoked tokens still succeed.
    """
    result = await SessionManager(uow).revoke_by_refresh_token(request.refresh_token, client)

    if result.is_err():
        raise error_for(result.error)

    return LogoutResponse(success=True)


@router.post(
    "/logout-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeAllSessionsResponse,
)
async def logout_all(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """Logout everywhere: revokes every active session of the caller."""
    result = await SessionManager(uow).revoke_all_sessions(
        UUID(current_user["user_id"]), current_user.get("email"), client
    )

    if result.is_err():
        raise error_for(result.error)

    return result.value
