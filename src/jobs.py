"""
Security telemetry jobs

Each run opens its own database session and unit of work. Used by the
in-process timers and by the scripts under scripts/.
"""

import logging
from typing import List

from config import ApplicationConfig
from libs.result import Result
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.jobs import PeriodicJob
from src.app.use_cases.metrics import SecurityMetricsSnapshotService
from src.depends import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def collect_security_metrics_snapshot(window_hours=None, top_n=None) -> Result:
    async with AsyncSessionLocal() as session:
        service = SecurityMetricsSnapshotService(SqlAlchemyUnitOfWork(session))
        return await service.create_snapshot(window_hours, top_n)


async def prune_session_audit_events(retention_days=None) -> Result:
    async with AsyncSessionLocal() as session:
        service = SecurityMetricsSnapshotService(SqlAlchemyUnitOfWork(session))
        return await service.prune_audit_events(retention_days)


async def prune_security_metrics_snapshots(retention_days=None) -> Result:
    async with AsyncSessionLocal() as session:
        service = SecurityMetricsSnapshotService(SqlAlchemyUnitOfWork(session))
        return await service.prune_snapshots(retention_days)


async def _snapshot_tick():
    result = await collect_security_metrics_snapshot()
    if result.is_err():
        raise RuntimeError(f"snapshot failed: {result.error.code}")
    pruned = await prune_security_metrics_snapshots()
    if pruned.is_err():
        raise RuntimeError(f"snapshot prune failed: {pruned.error.code}")


async def _audit_prune_tick():
    result = await prune_session_audit_events()
    if result.is_err():
        raise RuntimeError(f"audit prune failed: {result.error.code}")


def build_jobs() -> List[PeriodicJob]:
    return [
        PeriodicJob(
            "collect_security_metrics_snapshot",
            ApplicationConfig.SECURITY_METRICS_SNAPSHOT_INTERVAL_MINUTES,
            _snapshot_tick,
        ),
        PeriodicJob(
            "prune_session_audit_events",
            ApplicationConfig.SESSION_AUDIT_PRUNE_INTERVAL_MINUTES,
            _audit_prune_tick,
        ),
    ]
