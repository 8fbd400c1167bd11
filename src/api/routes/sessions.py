from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.api.error import error_for
from src.app.services.session_audit_logger import ClientContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    ActiveSessionsResponse,
    RevokeSessionResult,
    SessionManager,
)
from src.depends import get_client_context, get_current_user, get_unit_of_work

router = APIRouter(prefix="/auth/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=ActiveSessionsResponse)
async def list_sessions(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """
    List Active Sessions

    Newest first, with the configured maximum. Token hashes are never exposed.
    """
    result = await SessionManager(uow).list_active_sessions(
        UUID(current_user["user_id"]), current_user.get("email"), client
    )

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResult,
)
async def revoke_session(
    session_id: UUID,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    client: ClientContext = Depends(get_client_context),
):
    """
    Revoke One Session

    Only sessions owned by the caller can be revoked. Revoking an already
    revoked session succeeds with revoked=false.

    Raises:
        - 403 Forbidden: Session belongs to another user
        - 404 Not Found: Session not found
        - 500 Internal Server Error: Server error
    """
    result = await SessionManager(uow).revoke_session(
        session_id, UUID(current_user["user_id"]), current_user.get("email"), client
    )

    if result.is_err():
        raise error_for(result.error)

    return result.value
