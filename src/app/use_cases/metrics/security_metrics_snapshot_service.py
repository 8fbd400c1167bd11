"""
Security Metrics Snapshot Service

Persists windowed metrics as history and applies retention to both the
snapshot history and the session audit log.
"""

import logging
import math
from datetime import timedelta
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from config import ApplicationConfig
from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import clamp_positive, isoformat_utc, parse_iso_utc, utc_now
from src.domain.entities import SecurityMetricSnapshot
from .dtos import (
    IpAttempt,
    LoginMetrics,
    MetricsWindow,
    PruneResult,
    SecurityMetricsHistory,
    SecurityMetricsSnapshotPoint,
    UserAttempt,
)
from .security_metrics_aggregator import MAX_WINDOW_HOURS, SecurityMetricsAggregator

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 500

STORE_ERROR = Error("STORE_ERROR", "Metrics store unavailable")


def retention_days_or_default(value, default: int) -> int:
    """Floor to whole days, clamp negatives to 0, non-numeric yields default."""
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return max(0, int(math.floor(number)))


def _coerce_rankings(items, model):
    rankings = []
    for item in items or []:
        try:
            rankings.append(model.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed snapshot ranking entry: %r", item)
    return rankings


def to_snapshot_point(snapshot: SecurityMetricSnapshot) -> SecurityMetricsSnapshotPoint:
    return SecurityMetricsSnapshotPoint(
        id=str(snapshot.id),
        generated_at=isoformat_utc(snapshot.generated_at),
        window=MetricsWindow(
            hours=snapshot.window_hours,
            start=isoformat_utc(snapshot.period_start),
            end=isoformat_utc(snapshot.period_end),
        ),
        top_n=snapshot.top_n,
        login=LoginMetrics(
            attempts=snapshot.login_attempts,
            failed_attempts=snapshot.login_failed_attempts,
            failure_rate=snapshot.login_failure_rate,
        ),
        top_ip_attempts=_coerce_rankings(snapshot.top_ip_attempts, IpAttempt),
        top_user_attempts=_coerce_rankings(snapshot.top_user_attempts, UserAttempt),
        created_at=isoformat_utc(snapshot.created_at) if snapshot.created_at else None,
    )


class SecurityMetricsSnapshotService:
    """
    Snapshot history and retention.

    Business Rules:
    - create_snapshot always appends; callers control cadence
    - History is read newest first and returned oldest first
    - Pruning deletes rows strictly older than now - retentionDays
    """

    def __init__(
        self,
        uow: UnitOfWork,
        aggregator: Optional[SecurityMetricsAggregator] = None,
        clock=utc_now,
    ):
        self.uow = uow
        self.clock = clock
        self.aggregator = aggregator or SecurityMetricsAggregator(uow, clock=clock)

    async def create_snapshot(
        self, window_hours=None, top_n=None
    ) -> Result[SecurityMetricsSnapshotPoint]:
        """
        Compute metrics for the current window and persist them.

        Returns:
            Result with the stored snapshot, or STORE_ERROR
        """
        now = self.clock()
        metrics_result = await self.aggregator.compute_metrics(window_hours, top_n, now=now)
        if metrics_result.is_err():
            return metrics_result
        metrics = metrics_result.value

        snapshot = SecurityMetricSnapshot(
            generated_at=now,
            period_start=now - timedelta(hours=metrics.window.hours),
            period_end=now,
            window_hours=metrics.window.hours,
            top_n=metrics.top_n,
            login_attempts=metrics.login.attempts,
            login_failed_attempts=metrics.login.failed_attempts,
            login_failure_rate=metrics.login.failure_rate,
            top_ip_attempts=[i.model_dump(by_alias=True) for i in metrics.top_ip_attempts],
            top_user_attempts=[u.model_dump(by_alias=True) for u in metrics.top_user_attempts],
            created_at=now,
        )

        async with self.uow:
            try:
                snapshot = await self.uow.security_metric_snapshots.create(snapshot)
                point = to_snapshot_point(snapshot)
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("Security metrics snapshot write failed")
                await self.uow.rollback()
                return Return.err(STORE_ERROR)

        logger.info(
            "Security metrics snapshot %s: attempts=%s failed=%s window=%sh",
            point.id,
            point.login.attempts,
            point.login.failed_attempts,
            point.window.hours,
        )
        return Return.ok(point)

    async def list_history(
        self,
        window_hours=None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit=None,
    ) -> Result[SecurityMetricsHistory]:
        """
        Snapshot history in chronological order.

        Args:
            window_hours: Only snapshots collected with this window; ignored when
                not a positive number, capped at 336
            start_time: ISO-8601 lower bound on generatedAt (inclusive)
            end_time: ISO-8601 upper bound on generatedAt (inclusive)
            limit: Most recent snapshots to return, capped at 500; a bad value
                falls back to SECURITY_METRICS_HISTORY_DEFAULT_POINTS

        Returns:
            Result with SecurityMetricsHistory, or VALIDATION_ERROR / STORE_ERROR
        """
        limit = clamp_positive(
            limit, ApplicationConfig.SECURITY_METRICS_HISTORY_DEFAULT_POINTS, MAX_HISTORY_LIMIT
        )
        window_hours = clamp_positive(window_hours, None, MAX_WINDOW_HOURS)

        try:
            start = parse_iso_utc(start_time)
            end = parse_iso_utc(end_time)
        except ValueError:
            return Return.err(
                Error("VALIDATION_ERROR", "startTime/endTime must be ISO-8601 dates")
            )

        async with self.uow:
            try:
                snapshots = await self.uow.security_metric_snapshots.list_recent(
                    limit, window_hours=window_hours, start_time=start, end_time=end
                )
                points = [to_snapshot_point(s) for s in snapshots]
            except SQLAlchemyError:
                logger.exception("Security metrics history query failed")
                return Return.err(STORE_ERROR)

        points.reverse()
        return Return.ok(SecurityMetricsHistory(data=points, count=len(points), limit=limit))

    async def prune_audit_events(self, retention_days=None) -> Result[PruneResult]:
        """Delete session audit events older than the retention window."""
        days = retention_days_or_default(
            retention_days, ApplicationConfig.SESSION_AUDIT_RETENTION_DAYS
        )
        return await self._prune(
            "prune_session_audit_events", days, "session_audit_events"
        )

    async def prune_snapshots(self, retention_days=None) -> Result[PruneResult]:
        """Delete metric snapshots older than the retention window."""
        days = retention_days_or_default(
            retention_days, ApplicationConfig.SECURITY_METRICS_SNAPSHOT_RETENTION_DAYS
        )
        return await self._prune(
            "prune_security_metrics_snapshots", days, "security_metric_snapshots"
        )

    async def _prune(self, action: str, days: int, repository_name: str) -> Result[PruneResult]:
        now = self.clock()
        cutoff = now - timedelta(days=days)

        async with self.uow:
            try:
                repo = getattr(self.uow, repository_name)
                deleted = await repo.delete_older_than(cutoff)
                remaining = await repo.count_all()
                await self.uow.commit()
            except SQLAlchemyError:
                logger.exception("%s failed", action)
                await self.uow.rollback()
                return Return.err(STORE_ERROR)

        result = PruneResult(
            action=action,
            retention_days=days,
            cutoff=isoformat_utc(cutoff),
            deleted=deleted,
            remaining=remaining,
            timestamp=isoformat_utc(now),
        )
        logger.info(result.model_dump_json(by_alias=True))
        return Return.ok(result)
