import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add monorepo root to Python path for libs access
monorepo_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(monorepo_root))


def _passthrough(obj):
    return obj


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=_passthrough)
    uow.users.update = AsyncMock(side_effect=_passthrough)

    uow.refresh_sessions = MagicMock()
    uow.refresh_sessions.get_by_id = AsyncMock(return_value=None)
    uow.refresh_sessions.get_by_token_hash = AsyncMock(return_value=None)
    uow.refresh_sessions.create = AsyncMock(side_effect=_passthrough)
    uow.refresh_sessions.list_active_by_user = AsyncMock(return_value=[])
    uow.refresh_sessions.revoke_if_active = AsyncMock(return_value=True)
    uow.refresh_sessions.revoke_if_unrevoked = AsyncMock(return_value=True)
    uow.refresh_sessions.revoke_many = AsyncMock(side_effect=lambda ids, now: len(ids))
    uow.refresh_sessions.revoke_all_active_by_user = AsyncMock(return_value=0)
    uow.refresh_sessions.revoke_by_token_hash = AsyncMock(return_value=0)

    uow.session_audit_events = MagicMock()
    uow.session_audit_events.create = AsyncMock(side_effect=_passthrough)
    uow.session_audit_events.find = AsyncMock(return_value=[])
    uow.session_audit_events.count = AsyncMock(return_value=0)
    uow.session_audit_events.count_all = AsyncMock(return_value=0)
    uow.session_audit_events.count_logins = AsyncMock(return_value=0)
    uow.session_audit_events.group_logins_by = AsyncMock(return_value=[])
    uow.session_audit_events.delete_older_than = AsyncMock(return_value=0)

    uow.security_metric_snapshots = MagicMock()
    uow.security_metric_snapshots.create = AsyncMock(side_effect=_passthrough)
    uow.security_metric_snapshots.list_recent = AsyncMock(return_value=[])
    uow.security_metric_snapshots.count_all = AsyncMock(return_value=0)
    uow.security_metric_snapshots.delete_older_than = AsyncMock(return_value=0)

    return uow


@pytest.fixture
def recorded_events(mock_uow):
    """SessionAuditEvent objects written through the mock, in order."""

    def _events():
        return [c.args[0] for c in mock_uow.session_audit_events.create.await_args_list]

    return _events
