"""
Audit Use Cases

Investigation and export of the session audit log.
"""

from .dtos import AuditEventRow, AuditEventsPage, AuditExportMeta, AuditSummary
from .export_audit_events_use_case import (
    CSV_COLUMNS,
    ExportAuditEventsUseCase,
    csv_line,
    csv_value,
    iter_csv,
)
from .filters import AuditQuery, SORT_COLUMNS, parse_audit_query
from .query_audit_events_use_case import QueryAuditEventsUseCase

__all__ = [
    # Use Cases
    "QueryAuditEventsUseCase",
    "ExportAuditEventsUseCase",
    # Parsing
    "AuditQuery",
    "SORT_COLUMNS",
    "parse_audit_query",
    # CSV
    "CSV_COLUMNS",
    "csv_line",
    "csv_value",
    "iter_csv",
    # DTOs
    "AuditEventRow",
    "AuditEventsPage",
    "AuditExportMeta",
    "AuditSummary",
]
