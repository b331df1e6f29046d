"""
In-memory Document Store.

Dict-backed DocumentStore for development and tests. Documents are copied
on the way in and out, so callers never share state with the store.

Configuration:
    TRACEMAN = {
        "STORE_BACKEND": "traceman.adapters.memory.InMemoryDocumentStore",
    }
"""

from __future__ import annotations

import copy
import dataclasses
import itertools

from traceman.documents import AuditRecord, Recipe, Schedule, Staff, SupplierRecord


class InMemoryDocumentStore:
    """DocumentStore keeping everything in process memory."""

    def __init__(self, recipes=(), staff=(), catalog=()):
        self._ids = itertools.count(1)
        self.schedules: dict[str, tuple[str, Schedule]] = {}
        self.audits: dict[str, AuditRecord] = {}
        self.recipes: list[Recipe] = list(recipes)
        self.staff: list[Staff] = list(staff)
        self.catalog: list[SupplierRecord] = list(catalog)

    def _next_id(self) -> str:
        return str(next(self._ids))

    # ── Schedules ──

    def fetch_schedules(self, department: str) -> list[Schedule]:
        found = [copy.deepcopy(s) for dept, s in self.schedules.values() if dept == department]
        return sorted(found, key=lambda s: s.date)

    def save_schedule(self, department: str, schedule: Schedule) -> Schedule:
        stored = copy.deepcopy(schedule)
        if stored.id is None:
            stored.id = self._next_id()
        stored.department = department
        self.schedules[stored.id] = (department, stored)
        return copy.deepcopy(stored)

    def delete_schedule(self, schedule_id: str) -> None:
        self.schedules.pop(str(schedule_id), None)

    # ── Audits ──

    def fetch_audits(self, department: str) -> list[AuditRecord]:
        return [a for a in self.audits.values() if a.department == department]

    def save_audit(self, record: AuditRecord) -> AuditRecord:
        if record.id is None:
            existing = next((a for a in self.audits.values() if a.uid == record.uid), None)
            record = dataclasses.replace(record, id=existing.id if existing else self._next_id())
        self.audits[record.id] = record
        return record

    def delete_audit(self, audit_id: str) -> None:
        self.audits.pop(str(audit_id), None)

    # ── Reference data ──

    def fetch_recipes(self, department: str) -> list[Recipe]:
        return [r for r in self.recipes if r.department == department]

    def fetch_handlers(self, department: str) -> list[Staff]:
        return [s for s in self.staff if s.department == department]

    def fetch_supplier_catalog(self, department: str | None = None) -> list[SupplierRecord]:
        if department is None:
            return list(self.catalog)
        return [row for row in self.catalog if row.department == department]
