"""
Security Metrics Use Cases

Windowed login metrics, snapshot history and retention.
"""

from .dtos import (
    IpAttempt,
    LoginMetrics,
    MetricsWindow,
    PruneResult,
    SecurityMetricsHistory,
    SecurityMetricsResult,
    SecurityMetricsSnapshotPoint,
    UserAttempt,
)
from .security_metrics_aggregator import (
    SecurityMetricsAggregator,
    clamp_positive,
    failure_rate,
    rank_attempts,
)
from .security_metrics_snapshot_service import (
    SecurityMetricsSnapshotService,
    retention_days_or_default,
)

__all__ = [
    # Use Cases
    "SecurityMetricsAggregator",
    "SecurityMetricsSnapshotService",
    # Helpers
    "clamp_positive",
    "failure_rate",
    "rank_attempts",
    "retention_days_or_default",
    # DTOs
    "IpAttempt",
    "UserAttempt",
    "LoginMetrics",
    "MetricsWindow",
    "PruneResult",
    "SecurityMetricsResult",
    "SecurityMetricsSnapshotPoint",
    "SecurityMetricsHistory",
]
