from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from src.api.error import error_for
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import (
    AuditEventsPage,
    AuditExportMeta,
    AuditQuery,
    ExportAuditEventsUseCase,
    QueryAuditEventsUseCase,
    iter_csv,
    parse_audit_query,
)
from src.depends import get_unit_of_work, require_admin
from src.domain.base import utc_now

router = APIRouter(prefix="/security/session-audit", tags=["Security Audit"])


def audit_query(
    user_email: Optional[str] = Query(None, alias="userEmail"),
    event_type: Optional[str] = Query(None, alias="eventType"),
    success: Optional[str] = Query(None),
    ip_address: Optional[str] = Query(None, alias="ipAddress"),
    session_id: Optional[str] = Query(None, alias="sessionId"),
    start_time: Optional[str] = Query(None, alias="startTime"),
    end_time: Optional[str] = Query(None, alias="endTime"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> AuditQuery:
    """Shared filters/sort for the query and export endpoints."""
    result = parse_audit_query(
        user_email=user_email,
        event_type=event_type,
        success=success,
        ip_address=ip_address,
        session_id=session_id,
        start_time=start_time,
        end_time=end_time,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    if result.is_err():
        raise error_for(result.error)
    return result.value


@router.get("", status_code=status.HTTP_200_OK, response_model=AuditEventsPage)
async def query_session_audit(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    _admin: dict = Depends(require_admin),
    query: AuditQuery = Depends(audit_query),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Session Audit Log

    Filtered, sorted page plus summary counts over the whole filtered set.

    Raises:
        - 400 Bad Request: Bad filter, sort column or sort order
        - 403 Forbidden: Caller is not an admin
        - 500 Internal Server Error: Server error
    """
    result = await QueryAuditEventsUseCase(uow).execute(query, page=page, limit=limit)

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.get("/export/meta", status_code=status.HTTP_200_OK, response_model=AuditExportMeta)
async def session_audit_export_meta(
    limit: Optional[str] = Query(None),
    _admin: dict = Depends(require_admin),
    query: AuditQuery = Depends(audit_query),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Export sizing (count, requested/effective limit, truncation) without rows."""
    result = await ExportAuditEventsUseCase(uow).meta(query, limit)

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.get("/export")
async def export_session_audit(
    limit: Optional[str] = Query(None),
    _admin: dict = Depends(require_admin),
    query: AuditQuery = Depends(audit_query),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Session Audit CSV Export

    Capped at SESSION_AUDIT_EXPORT_MAX_LIMIT rows. Sizing is reported in
    X-Session-Audit-* headers.
    """
    use_case = ExportAuditEventsUseCase(uow)

    meta_result = await use_case.meta(query, limit)
    if meta_result.is_err():
        raise error_for(meta_result.error)
    meta = meta_result.value

    rows_result = await use_case.export(query, limit)
    if rows_result.is_err():
        raise error_for(rows_result.error)

    filename = f"session-audit-{utc_now().strftime('%Y%m%dT%H%M%SZ')}.csv"
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "X-Session-Audit-Count": str(meta.count),
        "X-Session-Audit-Requested-Limit": str(meta.requested_limit),
        "X-Session-Audit-Effective-Limit": str(meta.effective_limit),
        "X-Session-Audit-Max-Limit": str(meta.max_limit),
        "X-Session-Audit-Truncated": "true" if meta.truncated else "false",
    }
    return StreamingResponse(
        iter_csv(rows_result.value),
        media_type="text/csv; charset=utf-8",
        headers=headers,
    )
