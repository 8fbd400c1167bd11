from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.domain.entities import SecurityMetricSnapshot


class ISecurityMetricSnapshotRepository(ABC):
    """SecurityMetricSnapshot repository interface - application layer"""

    @abstractmethod
    async def create(self, snapshot: SecurityMetricSnapshot) -> SecurityMetricSnapshot:
        """Persist a new snapshot"""
        pass

    @abstractmethod
    async def list_recent(
        self,
        limit: int,
        window_hours: Optional[int] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[SecurityMetricSnapshot]:
        """Snapshots ordered by generated_at DESC (newest first)"""
        pass

    @abstractmethod
    async def count_all(self) -> int:
        """Count every stored snapshot"""
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete snapshots with generated_at strictly before cutoff. Returns count."""
        pass
