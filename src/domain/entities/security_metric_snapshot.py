"""
SecurityMetricSnapshot Entity

Persisted copy of windowed login metrics for trend charts.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class SecurityMetricSnapshot(SQLModel, table=True):
    """
    SecurityMetricSnapshot entity - one collected metrics result.

    Business Rules:
    - Written only by the snapshot collector, never updated
    - login_failure_rate is a percentage with 2 decimals
    - Ranked lists hold at most top_n entries, sorted by attempts desc
    - Deleted by retention pruning on generated_at
    """

    __tablename__ = "security_metric_snapshots"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    generated_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    period_start: datetime = Field(sa_column=Column(DateTime, nullable=False))
    period_end: datetime = Field(sa_column=Column(DateTime, nullable=False))
    window_hours: int
    top_n: int

    login_attempts: int = Field(default=0)
    login_failed_attempts: int = Field(default=0)
    login_failure_rate: float = Field(default=0.0)

    top_ip_attempts: Optional[list] = Field(default=None, sa_column=Column(JSON))
    top_user_attempts: Optional[list] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_security_snapshot_generated_at", "generated_at"),
        Index("idx_security_snapshot_window_generated", "window_hours", "generated_at"),
    )
