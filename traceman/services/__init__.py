"""
Traceman Services.

Business logic that doesn't belong in models:
- suppliers: supplier catalog matching and CSV parsing
- audit: audit record derivation for completed items
- lifecycle: schedule item state machine and persistence
- calendar: calendar event projection
- backfill: audit maintenance (supplier backfill, completed-item conversion)
"""

from traceman.services.audit import AuditRecordBuilder
from traceman.services.backfill import backfill_audit_suppliers, convert_completed_items
from traceman.services.calendar import CalendarEvent, project
from traceman.services.lifecycle import ScheduleItemLifecycle
from traceman.services.suppliers import (
    SupplierMatcher,
    extract_ingredient_info,
    find_supplier,
    find_supplier_by_name,
    parse_catalog_csv,
)

__all__ = [
    "AuditRecordBuilder",
    "ScheduleItemLifecycle",
    "SupplierMatcher",
    "CalendarEvent",
    "project",
    "extract_ingredient_info",
    "find_supplier",
    "find_supplier_by_name",
    "parse_catalog_csv",
    "backfill_audit_suppliers",
    "convert_completed_items",
]
