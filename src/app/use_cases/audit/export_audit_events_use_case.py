"""
Export Audit Events Use Case

Bulk CSV export of the session audit log under a hard row ceiling.
"""

import csv
import io
import logging
from typing import Iterable, Iterator, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from config import ApplicationConfig
from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import clamp_positive, isoformat_utc
from src.domain.entities import SessionAuditEvent
from .dtos import AuditEventRow, AuditExportMeta
from .filters import AuditQuery

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_LIMIT = 1000
CSV_BOM = "\ufeff"
CSV_COLUMNS = (
    ("createdAt", "created_at"),
    ("eventType", "event_type"),
    ("success", "success"),
    ("userEmail", "user_email"),
    ("sessionId", "session_id"),
    ("ipAddress", "ip_address"),
    ("details", "details"),
)


def csv_value(value) -> str:
    """Text for one CSV field. None renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return isoformat_utc(value)
    return str(value)


def csv_line(values: Iterable, quoting: int = csv.QUOTE_ALL) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, quoting=quoting, lineterminator="\r\n").writerow(
        [csv_value(v) for v in values]
    )
    return buffer.getvalue()


def iter_csv(events: Iterable[Union[SessionAuditEvent, AuditEventRow]]) -> Iterator[str]:
    """BOM + plain header row, then one fully quoted line per event."""
    yield CSV_BOM + csv_line((header for header, _ in CSV_COLUMNS), csv.QUOTE_MINIMAL)
    for event in events:
        yield csv_line(getattr(event, attr) for _, attr in CSV_COLUMNS)


class ExportAuditEventsUseCase:
    """
    Use case for exporting the session audit log.

    Business Rules:
    - Same filters and sort as the paginated query
    - Never returns more than max_limit rows, whatever the caller requests
    - meta() reports requested/effective limits and truncation without
      materializing rows
    """

    def __init__(self, uow: UnitOfWork, max_limit: Optional[int] = None):
        self.uow = uow
        self.max_limit = max_limit or ApplicationConfig.SESSION_AUDIT_EXPORT_MAX_LIMIT

    async def meta(
        self, query: AuditQuery, limit=None
    ) -> Result[AuditExportMeta]:
        requested = clamp_positive(limit, DEFAULT_EXPORT_LIMIT)

        async with self.uow:
            try:
                count = await self.uow.session_audit_events.count(query.filters)
            except SQLAlchemyError:
                logger.exception("Session audit export count failed")
                return Return.err(Error("STORE_ERROR", "Audit store unavailable"))

        effective = min(requested, self.max_limit)
        return Return.ok(
            AuditExportMeta(
                count=count,
                requested_limit=requested,
                max_limit=self.max_limit,
                effective_limit=effective,
                truncated=requested > self.max_limit or count > effective,
            )
        )

    async def export(
        self, query: AuditQuery, limit=None
    ) -> Result[List[AuditEventRow]]:
        """
        Rows for the CSV export, capped at the effective limit.

        Returns:
            Result with the rows in export order, or STORE_ERROR
        """
        requested = clamp_positive(limit, DEFAULT_EXPORT_LIMIT)
        effective = min(requested, self.max_limit)

        async with self.uow:
            try:
                events = await self.uow.session_audit_events.find(
                    query.filters,
                    query.sort_column,
                    query.sort_order,
                    offset=0,
                    limit=effective,
                )
                rows = [AuditEventRow.from_entity(e) for e in events]
            except SQLAlchemyError:
                logger.exception("Session audit export failed")
                return Return.err(Error("STORE_ERROR", "Audit store unavailable"))

        logger.info("Exporting %s session audit event(s)", len(rows))
        return Return.ok(rows)
