from datetime import datetime
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.app.use_cases.audit import QueryAuditEventsUseCase, parse_audit_query
from src.domain.entities import SessionAuditEvent


def counting_store(mock_uow, totals):
    """totals keyed by (success, event_type) of the filters passed to count()"""

    async def count(filters):
        return totals.get((filters.success, filters.event_type), 0)

    mock_uow.session_audit_events.count.side_effect = count


@pytest.mark.asyncio
async def test_page_and_summary(mock_uow):
    event = SessionAuditEvent(
        id=uuid4(),
        event_type="login",
        success=False,
        user_email="ghost@condo.io",
        ip_address="10.0.0.1",
        details="user_not_found",
        created_at=datetime(2026, 3, 1, 9, 0, 0),
    )
    mock_uow.session_audit_events.find.return_value = [event]
    counting_store(
        mock_uow,
        {(None, None): 12, (True, None): 8, (False, None): 4, (False, "login"): 3},
    )
    query = parse_audit_query(sort_by="eventType", sort_order="asc").value

    result = await QueryAuditEventsUseCase(mock_uow).execute(query, page=3, limit=5)

    page = result.value
    assert page.count == 12
    assert page.page == 3
    assert page.limit == 5
    assert page.sort_by == "eventType"
    assert page.sort_order == "asc"
    assert page.summary.model_dump(by_alias=True) == {
        "total": 12,
        "success": 8,
        "failure": 4,
        "loginFailure": 3,
    }
    assert page.data[0].created_at == "2026-03-01T09:00:00.000Z"
    assert page.data[0].details == "user_not_found"
    mock_uow.session_audit_events.find.assert_awaited_once_with(
        query.filters, "event_type", "asc", offset=10, limit=5
    )


@pytest.mark.asyncio
async def test_summary_respects_success_filter(mock_uow):
    counting_store(mock_uow, {(True, None): 8})
    query = parse_audit_query(success="true").value

    result = await QueryAuditEventsUseCase(mock_uow).execute(query)

    summary = result.value.summary
    assert (summary.total, summary.success, summary.failure, summary.login_failure) == (8, 8, 0, 0)


@pytest.mark.asyncio
async def test_summary_for_non_login_event_type(mock_uow):
    counting_store(mock_uow, {(None, "refresh"): 5, (True, "refresh"): 4, (False, "refresh"): 1})
    query = parse_audit_query(event_type="refresh").value

    result = await QueryAuditEventsUseCase(mock_uow).execute(query)

    assert result.value.summary.login_failure == 0
    assert result.value.summary.failure == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "page, limit, expected_page, expected_limit",
    [
        ("abc", None, 1, 20),
        ("0", "0", 1, 20),
        ("-3", "500", 1, 200),
        ("2.7", "abc", 2, 20),
        (None, "50", 1, 50),
    ],
)
async def test_paging_values_fall_back_or_are_capped(
    mock_uow, page, limit, expected_page, expected_limit
):
    query = parse_audit_query().value

    result = await QueryAuditEventsUseCase(mock_uow).execute(query, page=page, limit=limit)

    assert result.value.page == expected_page
    assert result.value.limit == expected_limit
    mock_uow.session_audit_events.find.assert_awaited_once_with(
        query.filters,
        "created_at",
        "desc",
        offset=(expected_page - 1) * expected_limit,
        limit=expected_limit,
    )


@pytest.mark.asyncio
async def test_store_error(mock_uow):
    mock_uow.session_audit_events.find.side_effect = OperationalError("select", {}, Exception("x"))

    result = await QueryAuditEventsUseCase(mock_uow).execute(parse_audit_query().value)

    assert result.error.code == "STORE_ERROR"
