from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.api.utils.jwt import verify_jwt
from src.app.services.refresh_tokens import hash_refresh_token
from src.app.use_cases.sessions import SessionManager
from src.domain.entities import RefreshSession, User, UserRole


def make_user(**overrides):
    fields = dict(
        id=uuid4(),
        email="guard@condo.io",
        name="Front Desk",
        password_hash="x",
        role=UserRole.operator,
    )
    fields.update(overrides)
    return User(**fields)


def make_session(user_id, created_at, secret="secret", **overrides):
    fields = dict(
        id=uuid4(),
        user_id=user_id,
        token_hash=hash_refresh_token(secret),
        created_at=created_at,
        expires_at=created_at + timedelta(days=7),
    )
    fields.update(overrides)
    return RefreshSession(**fields)


@pytest.fixture
def manager(mock_uow, clock):
    return SessionManager(mock_uow, max_active_sessions=5, refresh_token_ttl="7d", clock=clock)


# ============================================================================
# issue_session
# ============================================================================


@pytest.mark.asyncio
async def test_issue_session_stores_only_token_hash(manager, mock_uow, now, recorded_events):
    user = make_user()

    result = await manager.issue_session(user)

    assert result.is_ok()
    tokens = result.value
    stored = mock_uow.refresh_sessions.create.await_args.args[0]
    assert stored.token_hash == hash_refresh_token(tokens.refresh_token)
    assert stored.token_hash != tokens.refresh_token
    assert stored.expires_at == now + timedelta(days=7)
    assert tokens.session_id == str(stored.id)
    assert tokens.expires_at == "2026-03-08T12:00:00.000Z"

    payload = verify_jwt(tokens.access_token)
    assert payload["user_id"] == str(user.id)
    assert payload["email"] == "guard@condo.io"
    assert payload["role"] == "operator"
    assert payload["sid"] == str(stored.id)

    events = recorded_events()
    assert len(events) == 1
    assert events[0].event_type == "login"
    assert events[0].success is True
    assert events[0].session_id == tokens.session_id
    assert events[0].details is None


@pytest.mark.asyncio
async def test_issue_session_secret_has_enough_entropy(manager):
    result = await manager.issue_session(make_user())

    # 48 random bytes, base64url without padding
    assert len(result.value.refresh_token) >= 64


@pytest.mark.asyncio
async def test_issue_session_evicts_oldest_beyond_cap(manager, mock_uow, now, recorded_events):
    user = make_user()
    older = [make_session(user.id, now - timedelta(hours=i), secret=f"s{i}") for i in range(1, 6)]
    created = []

    def create(session):
        created.append(session)
        return session

    mock_uow.refresh_sessions.create.side_effect = create
    mock_uow.refresh_sessions.list_active_by_user.side_effect = (
        lambda user_id, at: [created[-1]] + older
    )

    result = await manager.issue_session(user)

    assert result.is_ok()
    mock_uow.refresh_sessions.revoke_many.assert_awaited_once_with([older[-1].id], now)
    assert recorded_events()[0].details == "evicted=1"


@pytest.mark.asyncio
async def test_issue_session_keeps_new_session_on_created_at_tie(manager, mock_uow, now):
    user = make_user()
    older = [make_session(user.id, now, secret=f"s{i}") for i in range(5)]
    created = []

    def create(session):
        created.append(session)
        return session

    mock_uow.refresh_sessions.create.side_effect = create
    # store returns the new session last among equal timestamps
    mock_uow.refresh_sessions.list_active_by_user.side_effect = (
        lambda user_id, at: older + [created[-1]]
    )

    result = await manager.issue_session(user)

    assert result.is_ok()
    revoked_ids = mock_uow.refresh_sessions.revoke_many.await_args.args[0]
    assert created[-1].id not in revoked_ids
    assert revoked_ids == [older[-1].id]


@pytest.mark.asyncio
async def test_issue_session_under_cap_revokes_nothing(manager, mock_uow):
    result = await manager.issue_session(make_user())

    assert result.is_ok()
    mock_uow.refresh_sessions.revoke_many.assert_not_called()


@pytest.mark.asyncio
async def test_issue_session_store_error(manager, mock_uow, recorded_events):
    mock_uow.refresh_sessions.create.side_effect = OperationalError("insert", {}, Exception("down"))

    result = await manager.issue_session(make_user())

    assert result.is_err()
    assert result.error.code == "STORE_ERROR"
    mock_uow.rollback.assert_awaited()
    events = recorded_events()
    assert events[-1].success is False
    assert events[-1].details == "internal_error"


@pytest.mark.asyncio
async def test_audit_failure_does_not_fail_issuance(manager, mock_uow):
    mock_uow.session_audit_events.create.side_effect = RuntimeError("audit store down")

    result = await manager.issue_session(make_user())

    assert result.is_ok()
    assert result.value.refresh_token


# ============================================================================
# rotate_session
# ============================================================================


@pytest.mark.asyncio
async def test_rotate_requires_secret(manager, mock_uow, recorded_events):
    result = await manager.rotate_session(None)

    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    mock_uow.refresh_sessions.get_by_token_hash.assert_not_called()
    assert recorded_events()[0].details == "missing_refresh_token"


@pytest.mark.asyncio
async def test_rotate_unknown_secret(manager, recorded_events):
    result = await manager.rotate_session("nope")

    assert result.error.code == "INVALID_TOKEN"
    event = recorded_events()[0]
    assert event.event_type == "refresh"
    assert event.success is False
    assert event.details == "invalid_refresh_token"


@pytest.mark.asyncio
async def test_rotate_revoked_session(manager, mock_uow, now):
    session = make_session(uuid4(), now - timedelta(hours=1), revoked_at=now - timedelta(minutes=5))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = session

    result = await manager.rotate_session("secret")

    assert result.error.code == "SESSION_REVOKED"
    mock_uow.refresh_sessions.revoke_if_active.assert_not_called()


@pytest.mark.asyncio
async def test_rotate_expired_session(manager, mock_uow, now):
    session = make_session(uuid4(), now - timedelta(days=8))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = session

    result = await manager.rotate_session("secret")

    assert result.error.code == "SESSION_EXPIRED"


@pytest.mark.asyncio
async def test_rotate_session_whose_user_is_gone(manager, mock_uow, now, recorded_events):
    session = make_session(uuid4(), now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = session
    mock_uow.users.get_by_id.return_value = None

    result = await manager.rotate_session("secret")

    assert result.error.code == "INVALID_TOKEN"
    assert recorded_events()[0].details == "user_not_found"


@pytest.mark.asyncio
async def test_rotate_revokes_old_and_issues_new(manager, mock_uow, now, recorded_events):
    user = make_user()
    current = make_session(user.id, now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = current
    mock_uow.users.get_by_id.return_value = user

    result = await manager.rotate_session("secret")

    assert result.is_ok()
    tokens = result.value
    assert tokens.refresh_token != "secret"
    mock_uow.refresh_sessions.get_by_token_hash.assert_awaited_once_with(
        hash_refresh_token("secret")
    )
    mock_uow.refresh_sessions.revoke_if_active.assert_awaited_once_with(
        current.id, now, replaced_by_token_hash=hash_refresh_token(tokens.refresh_token)
    )
    new_session = mock_uow.refresh_sessions.create.await_args.args[0]
    assert new_session.token_hash == hash_refresh_token(tokens.refresh_token)
    assert tokens.session_id == str(new_session.id)

    event = recorded_events()[0]
    assert event.success is True
    assert event.session_id == tokens.session_id
    assert event.details == f"replaced_session={current.id}"


@pytest.mark.asyncio
async def test_rotate_losing_race_issues_nothing(manager, mock_uow, now, recorded_events):
    user = make_user()
    current = make_session(user.id, now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = current
    mock_uow.users.get_by_id.return_value = user
    mock_uow.refresh_sessions.revoke_if_active.return_value = False

    result = await manager.rotate_session("secret")

    assert result.error.code == "SESSION_REVOKED"
    mock_uow.refresh_sessions.create.assert_not_called()
    mock_uow.rollback.assert_awaited()
    assert recorded_events()[0].details == "concurrent_rotation"


# ============================================================================
# revoke_session / revoke_all_sessions / revoke_by_refresh_token
# ============================================================================


@pytest.mark.asyncio
async def test_revoke_session_not_found(manager, recorded_events):
    result = await manager.revoke_session(uuid4(), uuid4())

    assert result.error.code == "SESSION_NOT_FOUND"
    assert recorded_events()[0].details == "session_not_found"


@pytest.mark.asyncio
async def test_revoke_session_of_another_user_is_forbidden(manager, mock_uow, now, recorded_events):
    session = make_session(uuid4(), now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_id.return_value = session

    result = await manager.revoke_session(session.id, uuid4())

    assert result.error.code == "FORBIDDEN"
    mock_uow.refresh_sessions.revoke_if_unrevoked.assert_not_called()
    assert recorded_events()[0].details == "forbidden"


@pytest.mark.asyncio
async def test_revoke_own_session(manager, mock_uow, now, recorded_events):
    owner = uuid4()
    session = make_session(owner, now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_id.return_value = session

    result = await manager.revoke_session(session.id, owner, "guard@condo.io")

    assert result.is_ok()
    assert result.value.revoked is True
    assert result.value.session_id == str(session.id)
    mock_uow.refresh_sessions.revoke_if_unrevoked.assert_awaited_once_with(session.id, now)
    event = recorded_events()[0]
    assert event.event_type == "revoke_session"
    assert event.details == "revoked"


@pytest.mark.asyncio
async def test_revoke_already_revoked_session_is_idempotent(manager, mock_uow, now, recorded_events):
    owner = uuid4()
    session = make_session(owner, now - timedelta(hours=1), revoked_at=now)
    mock_uow.refresh_sessions.get_by_id.return_value = session
    mock_uow.refresh_sessions.revoke_if_unrevoked.return_value = False

    result = await manager.revoke_session(session.id, owner)

    assert result.is_ok()
    assert result.value.revoked is False
    assert recorded_events()[0].details == "already_revoked"


@pytest.mark.asyncio
async def test_revoke_all_sessions_reports_count(manager, mock_uow, now, recorded_events):
    user_id = uuid4()
    mock_uow.refresh_sessions.revoke_all_active_by_user.return_value = 3

    result = await manager.revoke_all_sessions(user_id, "guard@condo.io")

    assert result.value.revoked_sessions == 3
    mock_uow.refresh_sessions.revoke_all_active_by_user.assert_awaited_once_with(user_id, now)
    event = recorded_events()[0]
    assert event.event_type == "logout_all"
    assert event.details == "revoked=3"


@pytest.mark.asyncio
async def test_revoke_all_sessions_with_nothing_active_succeeds(manager):
    result = await manager.revoke_all_sessions(uuid4())

    assert result.is_ok()
    assert result.value.revoked_sessions == 0


@pytest.mark.asyncio
async def test_logout_revokes_by_token_hash(manager, mock_uow, now, recorded_events):
    session = make_session(uuid4(), now - timedelta(hours=1))
    mock_uow.refresh_sessions.get_by_token_hash.return_value = session
    mock_uow.refresh_sessions.revoke_by_token_hash.return_value = 1

    result = await manager.revoke_by_refresh_token("secret")

    assert result.value is True
    mock_uow.refresh_sessions.revoke_by_token_hash.assert_awaited_once_with(
        hash_refresh_token("secret"), now
    )
    event = recorded_events()[0]
    assert event.event_type == "logout"
    assert event.success is True
    assert event.session_id == str(session.id)


@pytest.mark.asyncio
async def test_logout_with_unknown_token_is_not_an_error(manager, recorded_events):
    result = await manager.revoke_by_refresh_token("unknown")

    assert result.is_ok()
    assert result.value is False
    assert recorded_events()[0].details == "already_revoked_or_not_found"


# ============================================================================
# list_active_sessions / enforce_session_cap
# ============================================================================


@pytest.mark.asyncio
async def test_list_active_sessions_newest_first(manager, mock_uow, now, recorded_events):
    user_id = uuid4()
    newer = make_session(user_id, now - timedelta(minutes=5), secret="a")
    older = make_session(user_id, now - timedelta(hours=2), secret="b")
    mock_uow.refresh_sessions.list_active_by_user.return_value = [newer, older]

    result = await manager.list_active_sessions(user_id)

    page = result.value
    assert [s.id for s in page.data] == [str(newer.id), str(older.id)]
    assert page.count == 2
    assert page.max_active_sessions == 5
    dumped = page.model_dump(by_alias=True)
    assert "tokenHash" not in dumped["data"][0]
    assert set(dumped["data"][0]) == {"id", "createdAt", "expiresAt"}
    assert recorded_events()[0].details == "count=2"


@pytest.mark.asyncio
async def test_enforce_session_cap_keeps_newest(mock_uow, clock, now):
    user_id = uuid4()
    sessions = [make_session(user_id, now - timedelta(hours=i), secret=f"s{i}") for i in range(4)]
    mock_uow.refresh_sessions.list_active_by_user.return_value = sessions
    manager = SessionManager(mock_uow, max_active_sessions=2, clock=clock)

    result = await manager.enforce_session_cap(user_id)

    assert result.value == 2
    mock_uow.refresh_sessions.revoke_many.assert_awaited_once_with(
        [sessions[2].id, sessions[3].id], now
    )
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_enforce_session_cap_store_error(mock_uow, clock):
    mock_uow.refresh_sessions.list_active_by_user = AsyncMock(
        side_effect=OperationalError("select", {}, Exception("down"))
    )
    manager = SessionManager(mock_uow, max_active_sessions=2, clock=clock)

    result = await manager.enforce_session_cap(uuid4())

    assert result.error.code == "STORE_ERROR"
    mock_uow.rollback.assert_awaited_once()
