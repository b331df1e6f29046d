"""
Document Store Protocol.

Defines the interface Traceman uses to persist schedules and audit records
and to read reference data (recipes, staff, supplier catalog).

Implementations:
    OrmDocumentStore     Django models (default)
    InMemoryDocumentStore  dict-backed, development and tests
    RestDocumentStore    json-server style HTTP API
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from traceman.documents import (
    AuditRecord,
    Recipe,
    Schedule,
    Staff,
    SupplierRecord,
)


@runtime_checkable
class DocumentStore(Protocol):
    """
    Protocol for schedule and audit persistence.

    Every method either succeeds or raises PersistenceError. Stores never
    return partially written documents.
    """

    def fetch_schedules(self, department: str) -> list[Schedule]:
        """
        Return all schedules of a department, ordered by date.

        Args:
            department: Canonical department tag

        Returns:
            Schedules with their items
        """
        ...

    def save_schedule(self, department: str, schedule: Schedule) -> Schedule:
        """
        Create (no id) or update (with id) a schedule.

        Returns:
            The stored schedule, with its id assigned
        """
        ...

    def delete_schedule(self, schedule_id: str) -> None:
        ...

    def fetch_audits(self, department: str) -> list[AuditRecord]:
        ...

    def save_audit(self, record: AuditRecord) -> AuditRecord:
        """
        Create (no id) or update (with id) an audit record.

        Updates are reserved for supplier backfill maintenance.
        """
        ...

    def delete_audit(self, audit_id: str) -> None:
        ...

    def fetch_recipes(self, department: str) -> list[Recipe]:
        ...

    def fetch_handlers(self, department: str) -> list[Staff]:
        """Return every staff member of a department (handlers and managers)."""
        ...

    def fetch_supplier_catalog(self, department: str | None = None) -> list[SupplierRecord]:
        """
        Return supplier catalog rows.

        Args:
            department: Restrict to one department, or None for all rows.
                Matching falls back across departments, so callers usually
                want the full catalog.
        """
        ...
