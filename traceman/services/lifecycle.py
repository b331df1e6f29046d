"""
Schedule item lifecycle.

Owns the schedules of one department and every mutation of their items:

    create → edit / direct_time_update → transition(in_progress)
           → transition(completed)  builds and stores the audit record,
                                    then removes the item
           → transition(cancelled)

Rules:
    - Validation happens before any mutation; a rejected operation changes
      nothing, in memory or in the store.
    - Every change appends one ChangeHistoryEntry; entries are never edited.
    - Mutations are applied in memory first and persisted afterwards. When
      the store fails, the in-memory schedules go back to the snapshot
      taken before the operation and PersistenceError is raised.
    - On completion the audit record is stored before the item is removed.
      A schedule write failing after that is logged as a partial failure;
      the audit record is kept.

Usage:
    lifecycle = ScheduleItemLifecycle(store, "BAKERY")
    lifecycle.load()
    item = lifecycle.create({"recipeCode": "R1", "date": "2025-03-01", "plannedQty": 20}, actor="Monica")
    lifecycle.transition(item.id, "in_progress", actor="Monica")
    result = lifecycle.transition(item.id, "completed", actor="Monica", actual_qty=18, quality_score=4)
    result.audit.ingredient_list
"""

from __future__ import annotations

import copy
import logging
import re
from datetime import date as date_type
from decimal import Decimal

from django.utils import timezone

from traceman.cache import DepartmentDirectory
from traceman.conf import get_setting
from traceman.departments import manager_for, normalize_department
from traceman.documents import (
    ChangeHistoryEntry,
    FieldChange,
    Schedule,
    ScheduleItem,
    to_decimal,
)
from traceman.exceptions import PersistenceError, ReferentialError, TraceValidationError
from traceman.results import TransitionResult
from traceman.services.audit import AuditRecordBuilder
from traceman.services.calendar import project
from traceman.signals import (
    DATA_UPDATED,
    NEW_AUDIT,
    PRODUCTION_COMPLETED,
    SCHEDULE_UPDATED,
    production_events,
)
from traceman.status import (
    ScheduleStatus,
    can_edit,
    is_valid_transition,
    label_for,
    normalize,
    transition_error,
)

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

CREATED_FIELD = "created"
STATUS_FIELD = "status"
TIME_FIELD = "time"

# Editable attributes: wire name → (attribute, kind)
EDITABLE_FIELDS = {
    "recipeCode": ("recipe_code", "code"),
    "date": ("date", "date"),
    "plannedQty": ("planned_qty", "quantity"),
    "startTime": ("start_time", "time"),
    "endTime": ("end_time", "time"),
    "handlerName": ("handler_name", "text"),
    "managerName": ("manager_name", "text"),
    "productDescription": ("product_description", "text"),
    "notes": ("notes", "text"),
    "actualQty": ("actual_qty", "optional_quantity"),
    "qualityScore": ("quality_score", "score"),
    "deviations": ("deviations", "list"),
    "ingredientSuppliers": ("ingredient_suppliers", "list"),
    "batchCodes": ("batch_codes", "list"),
    "sellByDates": ("sell_by_dates", "list"),
    "receivingDates": ("receiving_dates", "list"),
}

# Fields that may accompany a status transition
PRODUCTION_FIELDS = (
    "actualQty",
    "qualityScore",
    "notes",
    "deviations",
    "ingredientSuppliers",
    "batchCodes",
    "sellByDates",
    "receivingDates",
)

# Only recorded once production has started
PRODUCTION_FIGURES = ("actualQty", "qualityScore")

_ATTRIBUTE_TO_WIRE = {attr: wire for wire, (attr, _kind) in EDITABLE_FIELDS.items()}


def _invalid(field: str, message: str, value=None) -> TraceValidationError:
    return TraceValidationError("INVALID_VALUE", message, field=field, value=str(value))


def wire_name(key: str) -> str:
    """Accept both wire names (plannedQty) and attribute names (planned_qty)."""
    if key in EDITABLE_FIELDS:
        return key
    if key in _ATTRIBUTE_TO_WIRE:
        return _ATTRIBUTE_TO_WIRE[key]
    if key in (STATUS_FIELD, "id", "changeHistory", "change_history", "confirmationTimestamp"):
        raise TraceValidationError(
            "UNKNOWN_FIELD",
            f"Field {key!r} cannot be edited",
            field=key,
        )
    raise TraceValidationError("UNKNOWN_FIELD", f"Unknown field {key!r}", field=key)


def coerce_value(field: str, value):
    """Validate and convert one patch value to its attribute type."""
    _attr, kind = EDITABLE_FIELDS[field]

    if kind == "code":
        text = str(value or "").strip()
        if not text:
            raise _invalid(field, "Recipe code is required", value)
        return text

    if kind == "date":
        text = str(value or "").strip()
        try:
            return date_type.fromisoformat(text).isoformat()
        except ValueError:
            raise _invalid(field, f"Invalid date {value!r}, expected YYYY-MM-DD", value) from None

    if kind == "quantity":
        number = to_decimal(value)
        if number is None or number < 0:
            raise _invalid(field, f"Invalid quantity {value!r}", value)
        return number

    if kind == "optional_quantity":
        if value is None or value == "":
            return None
        number = to_decimal(value)
        if number is None or number < 0:
            raise _invalid(field, f"Invalid quantity {value!r}", value)
        return number

    if kind == "score":
        if value is None or value == "":
            return None
        number = to_decimal(value)
        if number is None or number != number.to_integral_value() or not 1 <= number <= 5:
            raise _invalid(field, f"Quality score must be 1-5, got {value!r}", value)
        return int(number)

    if kind == "time":
        text = str(value or "").strip()
        if text and not _TIME_RE.match(text):
            raise _invalid(field, f"Invalid time {value!r}, expected HH:MM", value)
        return text

    if kind == "list":
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise _invalid(field, f"{field} must be a list", value)
        return ["" if v is None else str(v) for v in value]

    return "" if value is None else str(value)


def coerce_patch(patch: dict, allowed=None) -> dict[str, object]:
    """Validate a whole patch before anything is applied. Returns wire → value."""
    coerced = {}
    for key, value in (patch or {}).items():
        field = wire_name(key)
        if allowed is not None and field not in allowed:
            raise TraceValidationError(
                "UNKNOWN_FIELD",
                f"Field {key!r} cannot be set on a status change",
                field=key,
            )
        coerced[field] = coerce_value(field, value)
    _check_time_range(coerced.get("startTime"), coerced.get("endTime"))
    return coerced


def _check_time_range(start: str | None, end: str | None) -> None:
    if start and end and end <= start:
        raise TraceValidationError(
            "INVALID_VALUE",
            f"End time {end} must be after start time {start}",
            field="endTime",
            value=end,
        )


def diff_item(item: ScheduleItem, values: dict[str, object]) -> list[FieldChange]:
    changes = []
    for field, new_value in values.items():
        attr = EDITABLE_FIELDS[field][0]
        old_value = getattr(item, attr)
        if old_value != new_value:
            changes.append(FieldChange(field, old_value, new_value))
    return changes


def apply_values(item: ScheduleItem, values: dict[str, object]) -> None:
    for field, value in values.items():
        setattr(item, EDITABLE_FIELDS[field][0], value)


class ScheduleItemLifecycle:
    """
    Schedule item state machine for one department.

    Args:
        store: DocumentStore
        department: Department tag, name or code
        directory: Cached reference data (recipes, catalog); built on the
            store when omitted
        events: ProductionEvents channel (default channel when omitted)
        clock: Callable returning the current datetime
    """

    def __init__(self, store, department, *, directory=None, events=None, clock=None):
        self.store = store
        self.department = normalize_department(department)
        self.directory = directory or DepartmentDirectory(store)
        self.events = events or production_events
        self.clock = clock or timezone.now
        self.schedules: list[Schedule] = []

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def load(self) -> list[Schedule]:
        """(Re)load the department's schedules from the store."""
        self.schedules = self.store.fetch_schedules(self.department)
        logger.debug(
            f"Loaded {len(self.schedules)} schedules for {self.department}",
            extra={"department": self.department},
        )
        return self.schedules

    def locate(self, item_id: str) -> tuple[Schedule, ScheduleItem]:
        for schedule in self.schedules:
            item = schedule.find(item_id)
            if item is not None:
                return schedule, item
        raise TraceValidationError(
            "ITEM_NOT_FOUND",
            f"Schedule item {item_id} not found",
            item=item_id,
        )

    def find(self, item_id: str) -> ScheduleItem | None:
        try:
            return self.locate(item_id)[1]
        except TraceValidationError:
            return None

    def schedule_for(self, date: str) -> Schedule | None:
        for schedule in self.schedules:
            if schedule.date == date:
                return schedule
        return None

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        for schedule in self.schedules:
            if schedule.id == str(schedule_id):
                return schedule
        return None

    def history(self, item_id: str) -> list[ChangeHistoryEntry]:
        return list(self.locate(item_id)[1].change_history)

    def calendar_events(self) -> list:
        return project(self.schedules, self.directory.recipes(self.department))

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    def create(self, data: dict, actor: str = "System") -> ScheduleItem:
        """
        Schedule a new production run.

        The status is always SCHEDULED and the history starts with a
        single `created` entry, whatever `data` contains.
        """
        data = dict(data or {})
        for ignored in ("id", "status", "changeHistory", "confirmationTimestamp"):
            data.pop(ignored, None)
        if "recipeCode" not in data and "recipe_code" not in data:
            raise _invalid("recipeCode", "Recipe code is required")
        if "date" not in data:
            raise _invalid("date", "Date is required")
        values = coerce_patch(data)
        for figure in PRODUCTION_FIGURES:
            values.pop(figure, None)

        recipe_code = values["recipeCode"]
        item_date = values["date"]
        now = self.clock()
        item_id = f"{item_date}-{recipe_code}-{int(now.timestamp() * 1000)}"
        if self.find(item_id) is not None:
            raise _invalid("id", f"Schedule item {item_id} already exists", item_id)

        item = ScheduleItem(id=item_id, recipe_code=recipe_code, date=item_date)
        apply_values(item, values)
        item.status = ScheduleStatus.SCHEDULED
        if not item.product_description:
            recipe = self.directory.recipe(self.department, recipe_code)
            if recipe is not None:
                item.product_description = recipe.description
        if not item.manager_name:
            item.manager_name = manager_for(self.department)
        item.change_history = [
            ChangeHistoryEntry.record(
                actor, [FieldChange(CREATED_FIELD, None, "new item")], now.isoformat()
            )
        ]

        snapshot = copy.deepcopy(self.schedules)
        schedule = self._schedule_for_write(item_date)
        schedule.items.append(item)
        self._persist(snapshot, [schedule], operation="create")

        logger.info(
            f"Created {item.id} ({recipe_code} x{item.planned_qty}) on {item_date}",
            extra={"item": item.id, "department": self.department, "actor": actor},
        )
        return item

    def edit(self, item_id: str, patch: dict, actor: str = "System") -> ScheduleItem:
        """
        Apply a field patch to a scheduled or in-progress item.

        All changed fields go into one history entry. Status cannot be
        patched; use `transition`. A date change moves the item to the
        schedule of the new date.
        """
        schedule, item = self.locate(item_id)
        self._check_editable(item)
        values = coerce_patch(patch)
        self._check_production_figures(item, values)
        _check_time_range(
            values.get("startTime", item.start_time),
            values.get("endTime", item.end_time),
        )

        changes = diff_item(item, values)
        if not changes:
            return item

        snapshot = copy.deepcopy(self.schedules)
        apply_values(item, values)
        self._append_history(item, actor, changes)
        touched = self._relocate(schedule, item)
        self._persist(snapshot, touched, operation="edit")

        logger.info(
            f"Edited {item.id}: {', '.join(c.field for c in changes)}",
            extra={"item": item.id, "department": self.department, "actor": actor},
        )
        return self.locate(item_id)[1]

    def direct_time_update(
        self,
        item_id: str,
        new_date: str,
        start_time: str,
        end_time: str,
        actor: str = "System",
    ) -> ScheduleItem:
        """
        Move an item in time (calendar drag and drop).

        Recorded as ONE history change with field `time` whose old and new
        values are "{date} {start}-{end}" strings.
        """
        schedule, item = self.locate(item_id)
        self._check_editable(item)
        values = coerce_patch({"date": new_date, "startTime": start_time, "endTime": end_time})

        old_slot = item.time_slot
        new_slot = f"{values['date']} {values['startTime']}-{values['endTime']}"
        if old_slot == new_slot:
            return item

        snapshot = copy.deepcopy(self.schedules)
        apply_values(item, values)
        self._append_history(item, actor, [FieldChange(TIME_FIELD, old_slot, new_slot)])
        touched = self._relocate(schedule, item)
        self._persist(snapshot, touched, operation="direct_time_update")

        logger.info(
            f"Rescheduled {item.id}: {old_slot} → {new_slot}",
            extra={"item": item.id, "department": self.department, "actor": actor},
        )
        return self.locate(item_id)[1]

    def transition(self, item_id: str, new_status, actor: str = "System", **production) -> TransitionResult:
        """
        Change an item's status.

        Production fields (actual_qty, quality_score, notes, deviations,
        ingredient_suppliers, batch_codes, sell_by_dates, receiving_dates)
        may accompany the change; `packing_batch_code` is passed to the
        audit record on completion.

        Raises:
            TraceValidationError: INVALID_TRANSITION naming both statuses
            ReferentialError: completing an item whose recipe is unknown
            PersistenceError: the store failed (state reverted)
        """
        schedule, item = self.locate(item_id)
        current = normalize(item.status)
        requested = normalize(new_status)

        if not is_valid_transition(current, requested):
            error = transition_error(current, requested)
            logger.warning(
                f"Rejected transition of {item.id}: {error.message}",
                extra={
                    "item": item.id,
                    "current": error.details["current"],
                    "requested": error.details["requested"],
                    "actor": actor,
                },
            )
            raise error

        packing_batch_code = production.pop("packing_batch_code", None)
        values = coerce_patch(production, allowed=PRODUCTION_FIELDS)

        if requested == ScheduleStatus.COMPLETED:
            return self._complete(schedule, item, actor, values, packing_batch_code)

        changes = [FieldChange(STATUS_FIELD, current.value, requested.value)]
        changes.extend(diff_item(item, values))

        snapshot = copy.deepcopy(self.schedules)
        apply_values(item, values)
        item.status = requested
        self._append_history(item, actor, changes)
        self._persist(snapshot, [schedule], operation="transition")

        logger.info(
            f"{item.id}: {label_for(current)} → {label_for(requested)}",
            extra={
                "item": item.id,
                "department": self.department,
                "from_status": current.value,
                "to_status": requested.value,
                "actor": actor,
            },
        )
        return TransitionResult(item=item, schedule=schedule)

    def remove_item(self, item_id: str, actor: str = "System") -> Schedule | None:
        """
        Delete an item from its schedule. An emptied schedule is deleted.

        Returns:
            The remaining schedule, or None when it was deleted
        """
        schedule, item = self.locate(item_id)
        snapshot = copy.deepcopy(self.schedules)
        schedule.items.remove(item)
        self._persist(snapshot, [schedule], operation="remove_item")
        logger.info(
            f"Removed {item.id} from {schedule.date}",
            extra={"item": item.id, "department": self.department, "actor": actor},
        )
        return schedule if schedule in self.schedules else None

    def delete_schedule(self, schedule_id: str, purge_audits: bool = False) -> int:
        """
        Delete a whole schedule.

        With `purge_audits`, the audit records created from this schedule
        are deleted as well; this is the only path that deletes audits.

        Returns:
            Number of audit records deleted
        """
        schedule = self.get_schedule(schedule_id)
        if schedule is None:
            raise TraceValidationError(
                "ITEM_NOT_FOUND",
                f"Schedule {schedule_id} not found",
                schedule=str(schedule_id),
            )

        snapshot = copy.deepcopy(self.schedules)
        self.schedules.remove(schedule)
        try:
            self.store.delete_schedule(schedule.id)
        except PersistenceError:
            self.schedules = snapshot
            raise

        purged = 0
        if purge_audits:
            for record in self.store.fetch_audits(self.department):
                if record.original_schedule_id == schedule.id and record.id is not None:
                    self.store.delete_audit(record.id)
                    purged += 1

        logger.info(
            f"Deleted schedule {schedule.id} ({schedule.date}), purged {purged} audits",
            extra={"schedule": schedule.id, "department": self.department, "purged": purged},
        )
        self.events.publish(SCHEDULE_UPDATED, schedule, deleted=True)
        if purged:
            self.events.publish(DATA_UPDATED, self.department, reason="audits purged")
        return purged

    # ══════════════════════════════════════════════════════════════
    # COMPLETION
    # ══════════════════════════════════════════════════════════════

    def _complete(self, schedule, item, actor, values, packing_batch_code) -> TransitionResult:
        recipe = self.directory.recipe(self.department, item.recipe_code)
        if recipe is None:
            raise ReferentialError(
                "RECIPE_NOT_FOUND",
                f"Cannot complete {item.id}: recipe {item.recipe_code} not found",
                recipe_code=item.recipe_code,
                item=item.id,
            )

        # Missing production figures default instead of blocking completion.
        if values.get("actualQty", item.actual_qty) is None:
            values["actualQty"] = item.planned_qty
        if values.get("qualityScore", item.quality_score) is None:
            values["qualityScore"] = get_setting("DEFAULT_QUALITY_SCORE")

        now = self.clock()
        completed = copy.deepcopy(item)
        changes = [FieldChange(STATUS_FIELD, normalize(item.status).value, ScheduleStatus.COMPLETED.value)]
        changes.extend(diff_item(completed, values))
        apply_values(completed, values)
        completed.status = ScheduleStatus.COMPLETED
        completed.confirmation_timestamp = now.isoformat()
        self._append_history(completed, actor, changes)

        builder = AuditRecordBuilder(self.directory.catalog(), clock=self.clock)
        record = builder.build(
            completed,
            recipe,
            schedule=schedule,
            packing_batch_code=packing_batch_code,
        )

        # Audit first: a failure here leaves everything untouched.
        audit = self.store.save_audit(record)

        snapshot = copy.deepcopy(self.schedules)
        schedule.items.remove(item)
        try:
            self._persist(snapshot, [schedule], operation="complete", publish=False)
        except PersistenceError as exc:
            logger.error(
                f"Audit {audit.uid} stored but schedule {schedule.id} was not updated; "
                f"item {item.id} remains scheduled",
                extra={"item": item.id, "uid": audit.uid, "schedule": schedule.id},
            )
            raise PersistenceError(
                "STORE_FAILED",
                f"Audit {audit.uid} was recorded but {item.id} could not be removed from its schedule",
                item=item.id,
                uid=audit.uid,
                partial=True,
            ) from exc

        emptied = schedule not in self.schedules
        logger.info(
            f"Completed {item.id}: audit {audit.uid}",
            extra={
                "item": item.id,
                "uid": audit.uid,
                "department": self.department,
                "actual_qty": float(audit.actual_qty),
                "actor": actor,
            },
        )
        self.events.publish(NEW_AUDIT, audit)
        self.events.publish(PRODUCTION_COMPLETED, audit, item=completed)
        self.events.publish(SCHEDULE_UPDATED, schedule, deleted=emptied)
        return TransitionResult(item=completed, schedule=None if emptied else schedule, audit=audit)

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    def _check_editable(self, item: ScheduleItem) -> None:
        if not can_edit(item.status):
            raise TraceValidationError(
                "NOT_EDITABLE",
                f"Cannot edit an item with status {label_for(item.status)}",
                item=item.id,
                status=str(getattr(item.status, "value", item.status)),
            )

    def _check_production_figures(self, item: ScheduleItem, values: dict) -> None:
        if normalize(item.status) != ScheduleStatus.SCHEDULED:
            return
        figures = [key for key in PRODUCTION_FIGURES if key in values]
        if figures:
            raise TraceValidationError(
                "NOT_EDITABLE",
                f"{', '.join(figures)} can only be recorded once production has started",
                item=item.id,
                fields=figures,
            )

    def _append_history(self, item: ScheduleItem, actor: str, changes: list[FieldChange]) -> None:
        item.change_history.append(
            ChangeHistoryEntry.record(actor, changes, self.clock().isoformat())
        )

    def _schedule_for_write(self, date: str) -> Schedule:
        schedule = self.schedule_for(date)
        if schedule is None:
            schedule = Schedule(
                date=date,
                department=self.department,
                manager_name=manager_for(self.department),
            )
            self.schedules.append(schedule)
            self.schedules.sort(key=lambda s: s.date)
        return schedule

    def _relocate(self, schedule: Schedule, item: ScheduleItem) -> list[Schedule]:
        """Move `item` to the schedule of its (new) date. Returns touched schedules."""
        if item.date == schedule.date:
            return [schedule]
        schedule.items.remove(item)
        target = self._schedule_for_write(item.date)
        target.items.append(item)
        return [target, schedule]

    def _persist(self, snapshot, schedules: list[Schedule], *, operation: str, publish: bool = True) -> None:
        """
        Write touched schedules; delete the ones left empty.

        On PersistenceError the in-memory schedules are restored from
        `snapshot` before the error propagates.
        """
        written = []
        try:
            for schedule in schedules:
                if schedule.items:
                    stored = self.store.save_schedule(self.department, schedule)
                    schedule.id = stored.id
                    written.append((schedule, False))
                else:
                    if schedule.id is not None:
                        self.store.delete_schedule(schedule.id)
                    if schedule in self.schedules:
                        self.schedules.remove(schedule)
                    written.append((schedule, True))
        except PersistenceError as exc:
            self.schedules = snapshot
            if written:
                logger.error(
                    f"{operation}: partial write, {len(written)} of {len(schedules)} schedules stored",
                    extra={"department": self.department, "operation": operation},
                )
            logger.warning(
                f"{operation} reverted: {exc}",
                extra={"department": self.department, "operation": operation, "code": exc.code},
            )
            raise

        if publish:
            for schedule, deleted in written:
                self.events.publish(SCHEDULE_UPDATED, schedule, deleted=deleted)
