"""
Audit Query Parsing

Turns raw query-string values into validated AuditEventFilters plus a sort
column and direction. Every failure is a VALIDATION_ERROR returned before any
store access.
"""

from dataclasses import dataclass
from typing import Optional

from libs.result import Error, Result, Return
from src.app.repositories.session_audit_event_repository import AuditEventFilters
from src.domain.base import parse_iso_utc

# external sort key -> entity attribute
SORT_COLUMNS = {
    "createdAt": "created_at",
    "eventType": "event_type",
    "success": "success",
    "userEmail": "user_email",
    "ipAddress": "ip_address",
}
SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"


@dataclass(frozen=True)
class AuditQuery:
    filters: AuditEventFilters
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER

    @property
    def sort_column(self) -> str:
        return SORT_COLUMNS[self.sort_by]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """'true'/'false' (any case) or None. Raises ValueError otherwise."""
    value = _clean(value)
    if value is None:
        return None
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(value)


def parse_audit_query(
    user_email: Optional[str] = None,
    event_type: Optional[str] = None,
    success: Optional[str] = None,
    ip_address: Optional[str] = None,
    session_id: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> Result[AuditQuery]:
    """
    Validate raw audit query parameters.

    Returns:
        Result with AuditQuery, or VALIDATION_ERROR naming the bad parameter
    """
    try:
        success_value = parse_bool(success)
    except ValueError:
        return Return.err(Error("VALIDATION_ERROR", "success must be 'true' or 'false'"))

    try:
        start = parse_iso_utc(start_time)
    except ValueError:
        return Return.err(Error("VALIDATION_ERROR", "startTime is not a valid ISO-8601 date"))
    try:
        end = parse_iso_utc(end_time)
    except ValueError:
        return Return.err(Error("VALIDATION_ERROR", "endTime is not a valid ISO-8601 date"))

    sort_by = _clean(sort_by) or DEFAULT_SORT_BY
    if sort_by not in SORT_COLUMNS:
        allowed = ", ".join(SORT_COLUMNS)
        return Return.err(
            Error("VALIDATION_ERROR", f"Invalid sortBy '{sort_by}'. Allowed: {allowed}")
        )

    sort_order = (_clean(sort_order) or DEFAULT_SORT_ORDER).lower()
    if sort_order not in SORT_ORDERS:
        return Return.err(Error("VALIDATION_ERROR", "sortOrder must be 'asc' or 'desc'"))

    filters = AuditEventFilters(
        user_email=_clean(user_email),
        event_type=_clean(event_type),
        success=success_value,
        ip_address=_clean(ip_address),
        session_id=_clean(session_id),
        start_time=start,
        end_time=end,
    )
    return Return.ok(AuditQuery(filters=filters, sort_by=sort_by, sort_order=sort_order))
