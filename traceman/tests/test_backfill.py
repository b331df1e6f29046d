"""
Tests for audit maintenance routines (traceman.services.backfill).
"""

from decimal import Decimal

import pytest

from traceman.cache import DepartmentDirectory
from traceman.documents import Recipe, RecipeIngredient, Schedule, ScheduleItem
from traceman.services.audit import AuditRecordBuilder
from traceman.services.backfill import backfill_audit_suppliers, convert_completed_items
from traceman.signals import DATA_UPDATED, ProductionEvents
from traceman.status import ScheduleStatus


@pytest.fixture
def events():
    return ProductionEvents()


@pytest.fixture
def unresolved_audit(memory_store, bread_recipe, clock):
    """Audit built before the catalog was loaded: every supplier Unknown."""
    item = ScheduleItem(id="2025-03-01-R1-1", recipe_code="R1", date="2025-03-01", planned_qty=Decimal("20"))
    record = AuditRecordBuilder([], clock=clock).build(item, bread_recipe, department="BAKERY")
    return memory_store.save_audit(record)


class TestBackfillAuditSuppliers:
    def test_fills_unknown_suppliers(self, memory_store, unresolved_audit, events):
        report = backfill_audit_suppliers(memory_store, "BAKERY", events=events)

        assert report.audits_scanned == 1
        assert report.audits_updated == 1
        assert report.lines_updated == 2
        assert report.updated_uids == [unresolved_audit.uid]
        stored = memory_store.audits[unresolved_audit.id]
        assert stored.supplier_name == ["Golden Mills", "Sweet Co", "Unknown"]
        assert stored.address_of_supplier[0] == "1 Mill Road, Paarl"
        assert stored.batch_code == unresolved_audit.batch_code

    def test_idempotent(self, memory_store, unresolved_audit, events):
        backfill_audit_suppliers(memory_store, "BAKERY", events=events)
        after_first = memory_store.audits[unresolved_audit.id]

        report = backfill_audit_suppliers(memory_store, "BAKERY", events=events)

        assert not report.changed
        assert memory_store.audits[unresolved_audit.id] == after_first

    def test_known_suppliers_kept_without_overwrite(self, memory_store, unresolved_audit, catalog, events):
        backfill_audit_suppliers(memory_store, "BAKERY", events=events)
        renamed = [row.__class__(**{**row.as_dict(), "supplier_name": "Renamed"}) for row in catalog]

        assert not backfill_audit_suppliers(memory_store, "BAKERY", renamed, events=events).changed

        report = backfill_audit_suppliers(memory_store, "BAKERY", renamed, overwrite=True, events=events)
        assert report.lines_updated == 2
        assert memory_store.audits[unresolved_audit.id].supplier_name[:2] == ["Renamed", "Renamed"]

    def test_publishes_data_updated(self, memory_store, unresolved_audit, events):
        received = []

        def on_data(sender, **kwargs):
            received.append(kwargs["entity"])

        events.connect(DATA_UPDATED, on_data)
        backfill_audit_suppliers(memory_store, "BAKERY", events=events)

        assert received == ["BAKERY"]

    def test_other_departments_untouched(self, memory_store, unresolved_audit, events):
        assert backfill_audit_suppliers(memory_store, "HMR", events=events).audits_scanned == 0

    def test_resolves_by_ingredient_code(self, memory_store, clock, events):
        """The code is the only link between SEASONING and the Spice World row."""
        recipe = Recipe(
            product_code="R7",
            description="Spiced Roll",
            department="BAKERY",
            ingredients=(RecipeIngredient(description="SEASONING", recipe_use=Decimal("0.02"), prod_code="999"),),
        )
        item = ScheduleItem(id="2025-03-01-R7-1", recipe_code="R7", date="2025-03-01", planned_qty=Decimal("50"))
        record = memory_store.save_audit(AuditRecordBuilder([], clock=clock).build(item, recipe, department="BAKERY"))
        assert record.lines[0].prod_code == "999"

        report = backfill_audit_suppliers(memory_store, "BAKERY", events=events)

        assert report.lines_updated == 1
        line = memory_store.audits[record.id].lines[0]
        assert line.supplier.name == "Spice World"
        assert line.country_of_origin == "India"


class TestConvertCompletedItems:
    @pytest.fixture
    def leftover_schedule(self, memory_store):
        schedule = Schedule(
            date="2025-03-01",
            department="BAKERY",
            items=[
                ScheduleItem(id="done", recipe_code="R1", date="2025-03-01", planned_qty=Decimal("10"), status=ScheduleStatus.COMPLETED, actual_qty=Decimal("9")),
                ScheduleItem(id="todo", recipe_code="R1", date="2025-03-01"),
                ScheduleItem(id="orphan", recipe_code="GONE", date="2025-03-01", status=ScheduleStatus.COMPLETED),
            ],
        )
        return memory_store.save_schedule("BAKERY", schedule)

    def test_converts_and_removes(self, memory_store, leftover_schedule, clock, events):
        report = convert_completed_items(memory_store, "BAKERY", clock=clock, events=events)

        assert report.converted == ["done"]
        assert report.skipped_missing_recipe == ["orphan"]
        (audit,) = memory_store.audits.values()
        assert audit.schedule_id == "done"
        assert audit.actual_qty == Decimal("9")
        assert audit.original_schedule_id == leftover_schedule.id
        remaining = memory_store.fetch_schedules("BAKERY")[0]
        assert [i.id for i in remaining.items] == ["todo", "orphan"]

    def test_already_audited_only_removed(self, memory_store, leftover_schedule, clock, events):
        convert_completed_items(memory_store, "BAKERY", clock=clock, events=events)
        schedule = memory_store.fetch_schedules("BAKERY")[0]
        schedule.items.append(
            ScheduleItem(id="done", recipe_code="R1", date="2025-03-01", status=ScheduleStatus.COMPLETED)
        )
        memory_store.save_schedule("BAKERY", schedule)

        report = convert_completed_items(memory_store, "BAKERY", clock=clock, events=events)

        assert report.skipped_existing == ["done"]
        assert report.converted == []
        assert len(memory_store.audits) == 1

    def test_emptied_schedule_deleted(self, memory_store, clock, events):
        saved = memory_store.save_schedule(
            "BAKERY",
            Schedule(
                date="2025-03-02",
                department="BAKERY",
                items=[ScheduleItem(id="x", recipe_code="R1", date="2025-03-02", status=ScheduleStatus.COMPLETED)],
            ),
        )

        report = convert_completed_items(
            memory_store, "BAKERY", directory=DepartmentDirectory(memory_store), clock=clock, events=events
        )

        assert report.schedules_deleted == [saved.id]
        assert memory_store.fetch_schedules("BAKERY") == []
