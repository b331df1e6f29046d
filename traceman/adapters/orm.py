"""
ORM Document Store.

Implements DocumentStore on traceman's Django models. This is the default
STORE_BACKEND.

Configuration:
    TRACEMAN = {
        "STORE_BACKEND": "traceman.adapters.orm.OrmDocumentStore",
    }
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction

from traceman.documents import AuditRecord, Recipe, Schedule, Staff, SupplierRecord
from traceman.exceptions import PersistenceError
from traceman.models import ProductionAudit
from traceman.models import Recipe as RecipeModel
from traceman.models import Schedule as ScheduleModel
from traceman.models import Staff as StaffModel
from traceman.models import SupplierProduct

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str, **context):
    """Translate database failures into PersistenceError."""
    try:
        yield
    except DatabaseError as e:
        logger.error(f"{operation} failed: {e}", extra={"operation": operation, **context})
        raise PersistenceError("STORE_FAILED", f"{operation} failed: {e}", operation=operation, **context) from e


def _pk(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class OrmDocumentStore:
    """
    DocumentStore backed by the Schedule, ProductionAudit and reference models.

    Schedules are unique per department and date: saving a new schedule for
    a date that already has one overwrites that row.
    """

    # ── Schedules ──

    def fetch_schedules(self, department: str) -> list[Schedule]:
        with _store_errors("fetch_schedules", department=department):
            rows = ScheduleModel.objects.filter(department=department).order_by("date", "id")
            return [row.to_document() for row in rows]

    def save_schedule(self, department: str, schedule: Schedule) -> Schedule:
        with _store_errors("save_schedule", department=department, schedule=schedule.id):
            with transaction.atomic():
                row = None
                pk = _pk(schedule.id)
                if pk is not None:
                    row = ScheduleModel.objects.select_for_update().filter(pk=pk).first()
                if row is None:
                    row = ScheduleModel.objects.filter(department=department, date=schedule.date).first()
                if row is None:
                    row = ScheduleModel()
                row.apply_document(schedule)
                row.department = department
                row.save()
            return row.to_document()

    def delete_schedule(self, schedule_id: str) -> None:
        pk = _pk(schedule_id)
        if pk is None:
            return
        with _store_errors("delete_schedule", schedule=schedule_id):
            ScheduleModel.objects.filter(pk=pk).delete()

    # ── Audits ──

    def fetch_audits(self, department: str) -> list[AuditRecord]:
        with _store_errors("fetch_audits", department=department):
            rows = ProductionAudit.objects.filter(department=department).order_by("date", "id")
            return [row.to_document() for row in rows]

    def save_audit(self, record: AuditRecord) -> AuditRecord:
        with _store_errors("save_audit", uid=record.uid):
            with transaction.atomic():
                row = None
                pk = _pk(record.id)
                if pk is not None:
                    row = ProductionAudit.objects.filter(pk=pk).first()
                if row is None:
                    row = ProductionAudit.objects.filter(uid=record.uid).first()
                if row is None:
                    row = ProductionAudit()
                row.apply_document(record)
                row.save()
            return row.to_document()

    def delete_audit(self, audit_id: str) -> None:
        pk = _pk(audit_id)
        if pk is None:
            return
        with _store_errors("delete_audit", audit=audit_id):
            ProductionAudit.objects.filter(pk=pk).delete()

    # ── Reference data ──

    def fetch_recipes(self, department: str) -> list[Recipe]:
        with _store_errors("fetch_recipes", department=department):
            rows = RecipeModel.objects.filter(department=department, is_active=True).prefetch_related(
                "ingredients"
            )
            return [row.to_document() for row in rows]

    def fetch_handlers(self, department: str) -> list[Staff]:
        with _store_errors("fetch_handlers", department=department):
            rows = StaffModel.objects.filter(department=department, is_active=True)
            return [row.to_document() for row in rows]

    def fetch_supplier_catalog(self, department: str | None = None) -> list[SupplierRecord]:
        with _store_errors("fetch_supplier_catalog", department=department):
            rows = SupplierProduct.objects.all()
            if department is not None:
                rows = rows.filter(department=department)
            return [row.to_record() for row in rows.order_by("id")]
