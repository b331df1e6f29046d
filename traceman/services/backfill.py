"""
Audit maintenance routines.

backfill_audit_suppliers
    Re-resolves supplier details of stored audit records against the
    current supplier catalog. Only lines whose supplier is Unknown are
    touched unless `overwrite` is set. Running it twice changes nothing
    the second time.

convert_completed_items
    Reconciles schedules that still hold completed items (legacy data, or
    a crash between the audit write and the schedule write): the missing
    audit record is built and stored, and the item leaves its schedule.
"""

from __future__ import annotations

import dataclasses
import logging

from traceman.cache import DepartmentDirectory
from traceman.departments import normalize_department
from traceman.results import BackfillReport, ConversionReport
from traceman.services.audit import AuditRecordBuilder
from traceman.services.suppliers import SupplierMatcher
from traceman.signals import DATA_UPDATED, production_events
from traceman.status import ScheduleStatus, normalize

logger = logging.getLogger(__name__)


def backfill_audit_suppliers(
    store,
    department,
    catalog_rows=None,
    *,
    overwrite: bool = False,
    events=None,
) -> BackfillReport:
    """
    Fill in supplier details of a department's audit records.

    Args:
        store: DocumentStore holding the audits
        department: Department tag, name or code
        catalog_rows: Supplier catalog (the store's full catalog when None)
        overwrite: Re-resolve every line, not only Unknown ones
    """
    dept = normalize_department(department)
    rows = catalog_rows if catalog_rows is not None else store.fetch_supplier_catalog()
    matcher = SupplierMatcher(rows)
    report = BackfillReport()

    for record in store.fetch_audits(dept):
        report.audits_scanned += 1
        lines = []
        changed = 0
        for line in record.lines:
            if not (overwrite or line.supplier.is_unknown):
                lines.append(line)
                continue
            detail = matcher.find(line.search_text, record.department)
            if detail is None or detail == line.supplier:
                lines.append(line)
                continue
            lines.append(
                dataclasses.replace(
                    line,
                    supplier=detail,
                    country_of_origin=detail.country_of_origin or line.country_of_origin,
                )
            )
            changed += 1

        if not changed:
            continue

        store.save_audit(dataclasses.replace(record, lines=tuple(lines)))
        report.audits_updated += 1
        report.lines_updated += changed
        report.updated_uids.append(record.uid)
        logger.info(
            f"Backfilled {changed} supplier(s) on audit {record.uid}",
            extra={"uid": record.uid, "department": dept, "lines": changed},
        )

    if report.changed:
        (events or production_events).publish(DATA_UPDATED, dept, reason="supplier backfill")
    return report


def convert_completed_items(
    store,
    department,
    *,
    directory: DepartmentDirectory | None = None,
    clock=None,
    events=None,
) -> ConversionReport:
    """
    Turn completed items still sitting in schedules into audit records.

    Items that already have an audit record are only removed. Items whose
    recipe is unknown are left in place and reported.
    """
    dept = normalize_department(department)
    directory = directory or DepartmentDirectory(store)
    builder_kwargs = {"clock": clock} if clock is not None else {}
    builder = AuditRecordBuilder(directory.catalog(), **builder_kwargs)
    audited = {record.schedule_id for record in store.fetch_audits(dept)}
    report = ConversionReport()

    for schedule in store.fetch_schedules(dept):
        remaining = []
        for item in schedule.items:
            if normalize(item.status) != ScheduleStatus.COMPLETED:
                remaining.append(item)
                continue
            if item.id in audited:
                report.skipped_existing.append(item.id)
                continue
            recipe = directory.recipe(dept, item.recipe_code)
            if recipe is None:
                logger.warning(
                    f"Skipping {item.id}: recipe {item.recipe_code} not found",
                    extra={"item": item.id, "recipe_code": item.recipe_code},
                )
                report.skipped_missing_recipe.append(item.id)
                remaining.append(item)
                continue
            record = builder.build(item, recipe, schedule=schedule)
            store.save_audit(record)
            audited.add(item.id)
            report.converted.append(item.id)

        if len(remaining) == len(schedule.items):
            continue
        schedule.items = remaining
        if remaining:
            store.save_schedule(dept, schedule)
        else:
            store.delete_schedule(schedule.id)
            report.schedules_deleted.append(schedule.id)

    logger.info(
        f"Converted {len(report.converted)} completed items for {dept}",
        extra={
            "department": dept,
            "converted": len(report.converted),
            "skipped_existing": len(report.skipped_existing),
            "skipped_missing_recipe": len(report.skipped_missing_recipe),
        },
    )
    if report.converted or report.schedules_deleted:
        (events or production_events).publish(DATA_UPDATED, dept, reason="completed items converted")
    return report
