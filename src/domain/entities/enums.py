"""
Access Control Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """Back-office user role"""

    admin = "admin"
    operator = "operator"


class SessionAuditEventType(str, Enum):
    """
    Known session audit event types.

    The stored column is a plain string so new event types can be recorded
    without a schema change.
    """

    login = "login"
    refresh = "refresh"
    logout = "logout"
    logout_all = "logout_all"
    list_sessions = "list_sessions"
    revoke_session = "revoke_session"
