from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, status
from pydantic import AliasChoices, BaseModel, Field

from src.api.error import error_for
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.metrics import (
    SecurityMetricsAggregator,
    SecurityMetricsHistory,
    SecurityMetricsResult,
    SecurityMetricsSnapshotPoint,
    SecurityMetricsSnapshotService,
)
from src.depends import get_unit_of_work, require_admin

router = APIRouter(prefix="/security/metrics", tags=["Security Metrics"])


class SnapshotRequest(BaseModel):
    """On-demand snapshot payload; bad or missing values fall back to the configured defaults"""

    window_hours: Optional[Union[int, float, str]] = Field(
        None,
        validation_alias=AliasChoices("windowHours", "window_hours"),
        description="Trailing window in hours (capped at 336)",
    )
    top_n: Optional[Union[int, float, str]] = Field(
        None,
        validation_alias=AliasChoices("topN", "top_n"),
        description="Entries per ranking (capped at 100)",
    )


@router.get("", status_code=status.HTTP_200_OK, response_model=SecurityMetricsResult)
async def security_metrics(
    window_hours: Optional[str] = Query(None, alias="windowHours"),
    top_n: Optional[str] = Query(None, alias="topN"),
    _admin: dict = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Security Metrics

    Login attempts, failures and top IPs/emails over a trailing window.
    Out-of-range windowHours/topN fall back to defaults or are capped.
    """
    result = await SecurityMetricsAggregator(uow).compute_metrics(window_hours, top_n)

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.get("/history", status_code=status.HTTP_200_OK, response_model=SecurityMetricsHistory)
async def security_metrics_history(
    window_hours: Optional[str] = Query(None, alias="windowHours"),
    start_time: Optional[str] = Query(None, alias="startTime"),
    end_time: Optional[str] = Query(None, alias="endTime"),
    limit: Optional[str] = Query(None),
    _admin: dict = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Persisted snapshots, oldest first."""
    result = await SecurityMetricsSnapshotService(uow).list_history(
        window_hours=window_hours, start_time=start_time, end_time=end_time, limit=limit
    )

    if result.is_err():
        raise error_for(result.error)

    return result.value


@router.post(
    "/snapshots",
    status_code=status.HTTP_201_CREATED,
    response_model=SecurityMetricsSnapshotPoint,
)
async def create_security_metrics_snapshot(
    request: Optional[SnapshotRequest] = None,
    _admin: dict = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Collect Security Metrics Snapshot

    Computes metrics for the current window and stores them as one history point.

    Raises:
        - 403 Forbidden: Caller is not an admin
        - 500 Internal Server Error: Server error
    """
    request = request or SnapshotRequest()
    result = await SecurityMetricsSnapshotService(uow).create_snapshot(
        request.window_hours, request.top_n
    )

    if result.is_err():
        raise error_for(result.error)

    return result.value
