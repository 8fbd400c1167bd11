import asyncio

import pytest

from src.app.services.session_audit_logger import ClientContext, SessionAuditLogger
from src.domain.entities.session_audit_event import DETAILS_MAX_LENGTH, USER_AGENT_MAX_LENGTH


@pytest.mark.asyncio
async def test_record_commits_event(mock_uow, clock, now, recorded_events):
    logger = SessionAuditLogger(mock_uow, clock=clock)

    ok = await logger.record(
        "login",
        True,
        ClientContext(ip_address="10.0.0.7", user_agent="Mozilla/5.0"),
        user_email="guard@condo.io",
        session_id="abc",
    )

    assert ok is True
    mock_uow.commit.assert_awaited_once()
    event = recorded_events()[0]
    assert event.created_at == now
    assert event.ip_address == "10.0.0.7"
    assert event.session_id == "abc"


@pytest.mark.asyncio
async def test_record_truncates_user_agent_and_details(mock_uow, recorded_events):
    logger = SessionAuditLogger(mock_uow)

    await logger.record(
        "refresh",
        False,
        ClientContext(user_agent="u" * 900),
        details="d" * 5000,
    )

    event = recorded_events()[0]
    assert len(event.user_agent) == USER_AGENT_MAX_LENGTH
    assert len(event.details) == DETAILS_MAX_LENGTH


@pytest.mark.asyncio
async def test_record_failure_is_suppressed(mock_uow):
    mock_uow.session_audit_events.create.side_effect = RuntimeError("disk full")
    logger = SessionAuditLogger(mock_uow)

    ok = await logger.record("logout", True)

    assert ok is False
    mock_uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_times_out(mock_uow):
    async def slow_commit():
        await asyncio.sleep(1)

    mock_uow.commit.side_effect = slow_commit
    logger = SessionAuditLogger(mock_uow, timeout_seconds=0.01)

    ok = await logger.record("logout_all", True)

    assert ok is False
    mock_uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_rollback_failure_is_suppressed(mock_uow):
    mock_uow.session_audit_events.create.side_effect = RuntimeError("disk full")
    mock_uow.rollback.side_effect = RuntimeError("connection lost")
    logger = SessionAuditLogger(mock_uow)

    assert await logger.record("logout", True) is False
