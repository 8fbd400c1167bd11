"""
Security Metrics Aggregator

Computes login statistics over a trailing window of the session audit log.
Read-only: never mutates the audit log.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from config import ApplicationConfig
from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import clamp_positive, isoformat_utc, utc_now
from .dtos import IpAttempt, LoginMetrics, MetricsWindow, SecurityMetricsResult, UserAttempt

logger = logging.getLogger(__name__)

MAX_WINDOW_HOURS = 336
MAX_TOP_N = 100


def failure_rate(failed: int, total: int) -> float:
    """Percentage with two decimals, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(failed / total * 100, 2)


def rank_attempts(
    attempts: List[Tuple[str, int]], failures: List[Tuple[str, int]], top_n: int
) -> List[Tuple[str, int, int, float]]:
    """
    Join attempt and failure counts per key.

    Sorted by attempts desc (stable over query order), truncated to top_n.
    """
    failed_by_key: Dict[str, int] = {key: count for key, count in failures}
    rows = [
        (key, count, failed_by_key.get(key, 0), failure_rate(failed_by_key.get(key, 0), count))
        for key, count in attempts
    ]
    rows.sort(key=lambda row: row[1], reverse=True)
    return rows[:top_n]


class SecurityMetricsAggregator:
    """
    Windowed login metrics.

    Business Rules:
    - windowHours in (0, 336], topN in (0, 100]; bad input falls back to
      the configured defaults
    - Window is inclusive on both ends: [now - windowHours, now]
    - Events with a null IP (or email) are left out of that ranking
    """

    def __init__(self, uow: UnitOfWork, clock=utc_now):
        self.uow = uow
        self.clock = clock

    async def compute_metrics(
        self, window_hours=None, top_n=None, now: Optional[datetime] = None
    ) -> Result[SecurityMetricsResult]:
        """
        Execute metrics computation.

        Args:
            window_hours: Trailing window length in hours
            top_n: Maximum entries per ranking
            now: Window end (defaults to the clock)

        Returns:
            Result with SecurityMetricsResult, or STORE_ERROR
        """
        hours = clamp_positive(
            window_hours, ApplicationConfig.SECURITY_METRICS_WINDOW_HOURS, MAX_WINDOW_HOURS
        )
        top = clamp_positive(top_n, ApplicationConfig.SECURITY_METRICS_TOP_N, MAX_TOP_N)
        end = now or self.clock()
        start = end - timedelta(hours=hours)

        async with self.uow:
            try:
                repo = self.uow.session_audit_events
                total = await repo.count_logins(start, end)
                failed = await repo.count_logins(start, end, failed_only=True)
                ip_rows = rank_attempts(
                    await repo.group_logins_by("ip_address", start, end),
                    await repo.group_logins_by("ip_address", start, end, failed_only=True),
                    top,
                )
                user_rows = rank_attempts(
                    await repo.group_logins_by("user_email", start, end),
                    await repo.group_logins_by("user_email", start, end, failed_only=True),
                    top,
                )
            except SQLAlchemyError:
                logger.exception("Security metrics computation failed")
                return Return.err(Error("STORE_ERROR", "Audit store unavailable"))

        return Return.ok(
            SecurityMetricsResult(
                generated_at=isoformat_utc(end),
                window=MetricsWindow(
                    hours=hours, start=isoformat_utc(start), end=isoformat_utc(end)
                ),
                top_n=top,
                login=LoginMetrics(
                    attempts=total,
                    failed_attempts=failed,
                    failure_rate=failure_rate(failed, total),
                ),
                top_ip_attempts=[
                    IpAttempt(
                        ip_address=key, attempts=count, failed_attempts=fails, failure_rate=rate
                    )
                    for key, count, fails, rate in ip_rows
                ],
                top_user_attempts=[
                    UserAttempt(
                        user_email=key, attempts=count, failed_attempts=fails, failure_rate=rate
                    )
                    for key, count, fails, rate in user_rows
                ],
            )
        )
