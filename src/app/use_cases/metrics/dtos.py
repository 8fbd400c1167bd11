"""
Security Metrics DTOs (Data Transfer Objects)

Response classes for windowed login metrics and their snapshot history.
"""

from typing import List, Optional

from src.app.use_cases.base_dto import CamelModel


class IpAttempt(CamelModel):
    """Login attempts from one IP address"""

    ip_address: str
    attempts: int
    failed_attempts: int
    failure_rate: float


class UserAttempt(CamelModel):
    """Login attempts for one email"""

    user_email: str
    attempts: int
    failed_attempts: int
    failure_rate: float


class MetricsWindow(CamelModel):
    hours: int
    start: str
    end: str


class LoginMetrics(CamelModel):
    attempts: int
    failed_attempts: int
    failure_rate: float


class SecurityMetricsResult(CamelModel):
    """Point-in-time login statistics over a trailing window"""

    generated_at: str
    window: MetricsWindow
    top_n: int
    login: LoginMetrics
    top_ip_attempts: List[IpAttempt]
    top_user_attempts: List[UserAttempt]


class SecurityMetricsSnapshotPoint(SecurityMetricsResult):
    """A persisted SecurityMetricsResult"""

    id: str
    created_at: Optional[str] = None


class SecurityMetricsHistory(CamelModel):
    """Snapshots in chronological order (oldest first)"""

    data: List[SecurityMetricsSnapshotPoint]
    count: int
    limit: int


class PruneResult(CamelModel):
    """Outcome of one retention pass"""

    action: str
    retention_days: int
    cutoff: str
    deleted: int
    remaining: int
    timestamp: str
