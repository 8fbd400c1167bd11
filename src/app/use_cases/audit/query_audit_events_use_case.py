"""
Query Audit Events Use Case

Paginated, filtered and sorted read access to the session audit log.
"""

import logging
from dataclasses import replace

from sqlalchemy.exc import SQLAlchemyError

from libs.result import Error, Result, Return
from src.app.repositories.session_audit_event_repository import AuditEventFilters
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import clamp_positive
from src.domain.entities import SessionAuditEventType
from .dtos import AuditEventRow, AuditEventsPage, AuditSummary
from .filters import AuditQuery

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 200


class QueryAuditEventsUseCase:
    """
    Use case for investigating the session audit log.

    Business Rules:
    - Filters and sort are validated before this use case runs (AuditQuery)
    - summary counts cover the filtered set, not just the returned page
    - Bad page or limit values fall back to 1 and 20; limit is capped at 200
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, query: AuditQuery, page=None, limit=None) -> Result[AuditEventsPage]:
        page = clamp_positive(page, 1)
        limit = clamp_positive(limit, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT)

        async with self.uow:
            try:
                events = await self.uow.session_audit_events.find(
                    query.filters,
                    query.sort_column,
                    query.sort_order,
                    offset=(page - 1) * limit,
                    limit=limit,
                )
                summary = await self._summary(query.filters)
                rows = [AuditEventRow.from_entity(e) for e in events]
            except SQLAlchemyError:
                logger.exception("Session audit query failed")
                return Return.err(Error("STORE_ERROR", "Audit store unavailable"))

        return Return.ok(
            AuditEventsPage(
                data=rows,
                count=summary.total,
                page=page,
                limit=limit,
                sort_by=query.sort_by,
                sort_order=query.sort_order,
                summary=summary,
            )
        )

    async def _summary(self, filters: AuditEventFilters) -> AuditSummary:
        repo = self.uow.session_audit_events
        login = SessionAuditEventType.login.value

        total = await repo.count(filters)
        success = 0 if filters.success is False else await repo.count(replace(filters, success=True))
        failure = 0 if filters.success is True else await repo.count(replace(filters, success=False))

        if filters.success is True or filters.event_type not in (None, login):
            login_failure = 0
        else:
            login_failure = await repo.count(replace(filters, success=False, event_type=login))

        return AuditSummary(
            total=total, success=success, failure=failure, login_failure=login_failure
        )
