"""
Traceman documents.

Plain dataclasses for everything that crosses the document store boundary:
schedules and their items, change history, recipes, staff, supplier catalog
rows and audit records.

`from_dict` is the deserialization boundary: statuses and departments are
normalized here so that legacy values never reach business logic.
`as_dict` produces the wire format (camelCase schedule items, snake_case
audits with parallel ingredient arrays).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from django.db import models
from django.utils.translation import gettext_lazy as _

from traceman.departments import normalize_department
from traceman.status import ScheduleStatus, label_for, normalize


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════


def to_decimal(value, default: Decimal | None = None) -> Decimal | None:
    """Parse a number; missing, malformed or non-finite values give `default`."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def to_int(value, default: int | None = None) -> int | None:
    number = to_decimal(value)
    if number is None:
        return default
    return int(number)


def number_to_json(value):
    """Decimal → int when integral, float otherwise (None passes through)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


def format_number(value: Decimal) -> str:
    """Plain rendering without trailing zeros: Decimal('0.5000') → '0.5'."""
    text = format(value.normalize(), "f")
    return text if text != "-0" else "0"


def _text(value) -> str:
    if value is None:
        return ""
    return str(value)


def _text_list(values) -> list[str]:
    if not values:
        return []
    return [_text(v) for v in values]


def with_code_token(description: str, prod_code: str) -> str:
    """Description with the product code appended as a trailing "(code)" token."""
    if prod_code and not description.rstrip().endswith(")"):
        return f"{description} ({prod_code})"
    return description


def _json_value(value):
    if isinstance(value, Decimal):
        return number_to_json(value)
    if isinstance(value, ScheduleStatus):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value


# ══════════════════════════════════════════════════════════════
# CHANGE HISTORY
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FieldChange:
    """One field diff inside a history entry."""

    field: str
    old_value: Any = None
    new_value: Any = None

    def as_dict(self) -> dict:
        return {
            "field": self.field,
            "oldValue": _json_value(self.old_value),
            "newValue": _json_value(self.new_value),
        }

    @classmethod
    def from_dict(cls, data: dict) -> FieldChange:
        return cls(
            field=_text(data.get("field")),
            old_value=data.get("oldValue"),
            new_value=data.get("newValue"),
        )


@dataclass(frozen=True)
class ChangeHistoryEntry:
    """Immutable audit-log row attached to a schedule item."""

    timestamp: str
    changed_by: str
    changes: tuple[FieldChange, ...]

    @classmethod
    def record(cls, actor: str, changes, timestamp: str) -> ChangeHistoryEntry:
        return cls(
            timestamp=timestamp,
            changed_by=actor,
            changes=tuple(
                FieldChange(c.field, _json_value(c.old_value), _json_value(c.new_value))
                for c in changes
            ),
        )

    @property
    def fields(self) -> list[str]:
        return [c.field for c in self.changes]

    def as_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "changedBy": self.changed_by,
            "changes": [c.as_dict() for c in self.changes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ChangeHistoryEntry:
        return cls(
            timestamp=_text(data.get("timestamp")),
            changed_by=_text(data.get("changedBy")),
            changes=tuple(FieldChange.from_dict(c) for c in data.get("changes") or []),
        )


# ══════════════════════════════════════════════════════════════
# SCHEDULES
# ══════════════════════════════════════════════════════════════


def parse_status(raw) -> ScheduleStatus | str:
    """
    Normalize a stored status.

    Unrecognised values are kept as the raw string so the item still loads;
    the status policy renders them as Unknown and refuses to move them.
    """
    if raw in (None, ""):
        return ScheduleStatus.SCHEDULED
    status = normalize(raw)
    if isinstance(status, ScheduleStatus):
        return status
    return _text(raw).strip()


@dataclass
class ScheduleItem:
    """One planned, in-flight or cancelled production run of a recipe."""

    id: str
    recipe_code: str
    date: str
    planned_qty: Decimal = Decimal("0")
    status: ScheduleStatus | str = ScheduleStatus.SCHEDULED
    start_time: str = ""
    end_time: str = ""
    handler_name: str = ""
    manager_name: str = ""
    product_description: str = ""
    notes: str = ""

    # Production fields
    actual_qty: Decimal | None = None
    quality_score: int | None = None
    deviations: list[str] = field(default_factory=lambda: ["none"])
    ingredient_suppliers: list[str] = field(default_factory=list)
    batch_codes: list[str] = field(default_factory=list)
    sell_by_dates: list[str] = field(default_factory=list)
    receiving_dates: list[str] = field(default_factory=list)
    confirmation_timestamp: str = ""

    change_history: list[ChangeHistoryEntry] = field(default_factory=list)

    @property
    def status_label(self) -> str:
        return label_for(self.status)

    @property
    def time_slot(self) -> str:
        """Combined '{date} {start}-{end}' string used in time-change history."""
        return f"{self.date} {self.start_time}-{self.end_time}"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "recipeCode": self.recipe_code,
            "date": self.date,
            "plannedQty": number_to_json(self.planned_qty),
            "status": getattr(self.status, "value", self.status),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "handlerName": self.handler_name,
            "managerName": self.manager_name,
            "productDescription": self.product_description,
            "notes": self.notes,
            "actualQty": number_to_json(self.actual_qty),
            "qualityScore": self.quality_score,
            "deviations": list(self.deviations),
            "ingredientSuppliers": list(self.ingredient_suppliers),
            "batchCodes": list(self.batch_codes),
            "sellByDates": list(self.sell_by_dates),
            "receivingDates": list(self.receiving_dates),
            "confirmationTimestamp": self.confirmation_timestamp,
            "changeHistory": [entry.as_dict() for entry in self.change_history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScheduleItem:
        deviations = data.get("deviations")
        return cls(
            id=_text(data.get("id")),
            recipe_code=_text(data.get("recipeCode")),
            date=_text(data.get("date")),
            planned_qty=to_decimal(data.get("plannedQty"), Decimal("0")),
            status=parse_status(data.get("status")),
            start_time=_text(data.get("startTime")),
            end_time=_text(data.get("endTime")),
            handler_name=_text(data.get("handlerName")),
            manager_name=_text(data.get("managerName")),
            product_description=_text(data.get("productDescription")),
            notes=_text(data.get("notes")),
            actual_qty=to_decimal(data.get("actualQty")),
            quality_score=to_int(data.get("qualityScore")),
            deviations=_text_list(deviations) if deviations else ["none"],
            ingredient_suppliers=_text_list(data.get("ingredientSuppliers")),
            batch_codes=_text_list(data.get("batchCodes")),
            sell_by_dates=_text_list(data.get("sellByDates")),
            receiving_dates=_text_list(data.get("receivingDates")),
            confirmation_timestamp=_text(data.get("confirmationTimestamp")),
            change_history=[
                ChangeHistoryEntry.from_dict(e) for e in data.get("changeHistory") or []
            ],
        )


@dataclass
class Schedule:
    """Items for one department on one date."""

    date: str
    department: str
    id: str | None = None
    manager_name: str = ""
    handlers_names: str = ""
    items: list[ScheduleItem] = field(default_factory=list)

    def find(self, item_id: str) -> ScheduleItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return -1

    def as_dict(self) -> dict:
        data = {
            "date": self.date,
            "department": self.department,
            "managerName": self.manager_name,
            "handlersNames": self.handlers_names,
            "items": [item.as_dict() for item in self.items],
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Schedule:
        # Older documents wrap the schedule in a {"0": {...}} envelope.
        body = data.get("0") if isinstance(data.get("0"), dict) else data
        schedule_id = body.get("id", data.get("id"))
        return cls(
            id=_text(schedule_id) if schedule_id not in (None, "") else None,
            date=_text(body.get("date")),
            department=normalize_department(body.get("department")),
            manager_name=_text(body.get("managerName")),
            handlers_names=_text(body.get("handlersNames")),
            items=[ScheduleItem.from_dict(i) for i in body.get("items") or []],
        )


# ══════════════════════════════════════════════════════════════
# REFERENCE DATA
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RecipeIngredient:
    description: str
    recipe_use: Decimal = Decimal("0")
    prod_code: str = ""
    supplier_name: str = ""
    supplier_code: str = ""
    supplier_address: str = ""
    country_of_origin: str = ""

    @property
    def search_text(self) -> str:
        return with_code_token(self.description, self.prod_code)

    def as_dict(self) -> dict:
        return {
            "description": self.description,
            "recipe_use": number_to_json(self.recipe_use),
            "prod_code": self.prod_code,
            "supplier_name": self.supplier_name,
            "supplier_code": self.supplier_code,
            "supplier_address": self.supplier_address,
            "country_of_origin": self.country_of_origin,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecipeIngredient:
        return cls(
            description=_text(data.get("description")),
            recipe_use=to_decimal(data.get("recipe_use"), Decimal("0")),
            prod_code=_text(data.get("prod_code")),
            supplier_name=_text(data.get("supplier_name")),
            supplier_code=_text(data.get("supplier_code")),
            supplier_address=_text(data.get("supplier_address")),
            country_of_origin=_text(data.get("country_of_origin")),
        )


@dataclass(frozen=True)
class Recipe:
    product_code: str
    description: str = ""
    department: str = ""
    ingredients: tuple[RecipeIngredient, ...] = ()

    def as_dict(self) -> dict:
        return {
            "product_code": self.product_code,
            "description": self.description,
            "department": self.department,
            "ingredients": [i.as_dict() for i in self.ingredients],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Recipe:
        return cls(
            product_code=_text(data.get("product_code")),
            description=_text(data.get("description")),
            department=normalize_department(data.get("department")),
            ingredients=tuple(
                RecipeIngredient.from_dict(i) for i in data.get("ingredients") or []
            ),
        )


class StaffRole(models.TextChoices):
    HANDLER = "Handler", _("Handler")
    MANAGER = "Manager", _("Manager")


@dataclass(frozen=True)
class Staff:
    name: str
    department: str
    role: str = StaffRole.HANDLER.value
    id: str = ""
    email: str = ""
    phone: str = ""

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "department": self.department,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Staff:
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            department=normalize_department(data.get("department")),
            role=_text(data.get("role")) or StaffRole.HANDLER.value,
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
        )


# Catalog column aliases seen in department CSV exports.
CATALOG_ALIASES = {
    "ingredient_product_code": ("ingredient_product_code", "ing.prod_code", "ing_prod_code", "ingredient_code", "prod_code"),
    "address": ("address", "supplier_address"),
    "product_description": ("product_description", "description"),
}


def _first(data: dict, keys) -> str:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return _text(value).strip()
    return ""


@dataclass(frozen=True)
class SupplierRecord:
    """Row of the department supplier catalog."""

    supplier_code: str
    supplier_name: str
    product_description: str
    ingredient_product_code: str = ""
    pack_size: str = ""
    address: str = ""
    department: str = ""
    country_of_origin: str = ""
    supplier_product_code: str = ""
    ean: str = ""
    contact_person: str = ""
    email: str = ""
    phone: str = ""

    def as_dict(self) -> dict:
        return {
            "supplier_code": self.supplier_code,
            "supplier_name": self.supplier_name,
            "product_description": self.product_description,
            "ingredient_product_code": self.ingredient_product_code,
            "pack_size": self.pack_size,
            "address": self.address,
            "department": self.department,
            "country_of_origin": self.country_of_origin,
            "supplier_product_code": self.supplier_product_code,
            "ean": self.ean,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict, department: str | None = None) -> SupplierRecord:
        dept = department if department is not None else data.get("department")
        return cls(
            supplier_code=_first(data, ("supplier_code",)),
            supplier_name=_first(data, ("supplier_name",)),
            product_description=_first(data, CATALOG_ALIASES["product_description"]),
            ingredient_product_code=_first(data, CATALOG_ALIASES["ingredient_product_code"]),
            pack_size=_first(data, ("pack_size",)),
            address=_first(data, CATALOG_ALIASES["address"]),
            department=normalize_department(dept),
            country_of_origin=_first(data, ("country_of_origin",)),
            supplier_product_code=_first(data, ("supplier_product_code",)),
            ean=_first(data, ("ean",)),
            contact_person=_first(data, ("contact_person",)),
            email=_first(data, ("email",)),
            phone=_first(data, ("phone",)),
        )


@dataclass(frozen=True)
class SupplierDetail:
    """Normalized supplier lookup result. Every field is a string."""

    name: str = ""
    supplier_code: str = ""
    address: str = ""
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    product_code: str = ""
    ean: str = ""
    description: str = ""
    pack_size: str = ""
    country_of_origin: str = ""

    UNKNOWN_NAME = "Unknown"

    @classmethod
    def unknown(cls) -> SupplierDetail:
        return cls(name=cls.UNKNOWN_NAME)

    @property
    def is_unknown(self) -> bool:
        return not self.name or self.name == self.UNKNOWN_NAME

    @classmethod
    def from_record(cls, row: SupplierRecord) -> SupplierDetail:
        return cls(
            name=row.supplier_name,
            supplier_code=row.supplier_code,
            address=row.address,
            contact_person=row.contact_person,
            email=row.email,
            phone=row.phone,
            product_code=row.supplier_product_code or row.ingredient_product_code,
            ean=row.ean,
            description=row.product_description,
            pack_size=row.pack_size,
            country_of_origin=row.country_of_origin,
        )

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "supplier_code": self.supplier_code,
            "address": self.address,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "product_code": self.product_code,
            "ean": self.ean,
            "description": self.description,
            "pack_size": self.pack_size,
            "country_of_origin": self.country_of_origin,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> SupplierDetail:
        data = data or {}
        return cls(
            name=_text(data.get("name")),
            supplier_code=_text(data.get("supplier_code")),
            address=_text(data.get("address")),
            contact_person=_text(data.get("contact_person")),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
            product_code=_text(data.get("product_code")),
            ean=_text(data.get("ean")),
            description=_text(data.get("description")),
            pack_size=_text(data.get("pack_size")),
            country_of_origin=_text(data.get("country_of_origin")),
        )


# ══════════════════════════════════════════════════════════════
# AUDIT RECORDS
# ══════════════════════════════════════════════════════════════

_LABEL_RE = re.compile(r"^(?P<desc>.*) \((?P<scaled>-?[\d.]+) from base: (?P<base>[^)]*)\)$")


@dataclass(frozen=True)
class IngredientAuditLine:
    """Traceability for one recipe ingredient of a completed run."""

    description: str
    base_quantity: Decimal
    scaled_quantity: Decimal
    supplier: SupplierDetail
    batch_code: str
    sell_by_date: str
    receiving_date: str
    country_of_origin: str
    prod_code: str = ""

    @property
    def search_text(self) -> str:
        return with_code_token(self.description, self.prod_code)

    @property
    def label(self) -> str:
        return (
            f"{self.description} ({self.scaled_quantity:.3f} "
            f"from base: {format_number(self.base_quantity)})"
        )

    def as_dict(self) -> dict:
        return {
            "description": self.description,
            "base_quantity": str(self.base_quantity),
            "scaled_quantity": str(self.scaled_quantity),
            "supplier": self.supplier.as_dict(),
            "batch_code": self.batch_code,
            "sell_by_date": self.sell_by_date,
            "receiving_date": self.receiving_date,
            "country_of_origin": self.country_of_origin,
            "prod_code": self.prod_code,
        }

    @classmethod
    def from_dict(cls, data: dict) -> IngredientAuditLine:
        return cls(
            description=_text(data.get("description")),
            base_quantity=to_decimal(data.get("base_quantity"), Decimal("0")),
            scaled_quantity=to_decimal(data.get("scaled_quantity"), Decimal("0")),
            supplier=SupplierDetail.from_dict(data.get("supplier")),
            batch_code=_text(data.get("batch_code")),
            sell_by_date=_text(data.get("sell_by_date")),
            receiving_date=_text(data.get("receiving_date")),
            country_of_origin=_text(data.get("country_of_origin")),
            prod_code=_text(data.get("prod_code")),
        )

    @classmethod
    def from_label(cls, label: str, **fields) -> IngredientAuditLine:
        """Rebuild a line from a rendered `ingredient_list` entry."""
        match = _LABEL_RE.match(label or "")
        if match:
            description = match.group("desc")
            scaled = to_decimal(match.group("scaled"), Decimal("0"))
            base = to_decimal(match.group("base"), Decimal("0"))
        else:
            description, scaled, base = _text(label), Decimal("0"), Decimal("0")
        return cls(
            description=description,
            base_quantity=base,
            scaled_quantity=scaled,
            **fields,
        )


def _at(values, index: int) -> str:
    if values and index < len(values) and values[index] is not None:
        return _text(values[index])
    return ""


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable traceability document for one completed production run.

    Ingredient data lives in `lines`; the parallel arrays of the wire
    format are derived from it and therefore always have equal length.
    """

    uid: str
    department: str
    date: str
    recipe_code: str
    lines: tuple[IngredientAuditLine, ...]
    planned_qty: Decimal
    actual_qty: Decimal
    quality_score: int
    confirmation_timestamp: str
    id: str | None = None
    product_name: str = ""
    schedule_id: str = ""
    original_schedule_id: str = ""
    department_manager: str = ""
    food_handler_responsible: str = ""
    packing_batch_code: tuple[str, ...] = ()
    notes: str = ""
    deviations: tuple[str, ...] = ("none",)

    @property
    def ingredient_list(self) -> list[str]:
        return [line.label for line in self.lines]

    @property
    def supplier_name(self) -> list[str]:
        return [line.supplier.name for line in self.lines]

    @property
    def supplier_details(self) -> list[dict]:
        return [line.supplier.as_dict() for line in self.lines]

    @property
    def address_of_supplier(self) -> list[str]:
        return [line.supplier.address for line in self.lines]

    @property
    def batch_code(self) -> list[str]:
        return [line.batch_code for line in self.lines]

    @property
    def sell_by_date(self) -> list[str]:
        return [line.sell_by_date for line in self.lines]

    @property
    def receiving_date(self) -> list[str]:
        return [line.receiving_date for line in self.lines]

    @property
    def country_of_origin(self) -> list[str]:
        return [line.country_of_origin for line in self.lines]

    def as_dict(self) -> dict:
        data = {
            "uid": self.uid,
            "department": self.department,
            "date": self.date,
            "recipe_code": self.recipe_code,
            "product_name": [self.product_name],
            "schedule_id": self.schedule_id,
            "originalScheduleId": self.original_schedule_id,
            "department_manager": self.department_manager,
            "food_handler_responsible": self.food_handler_responsible,
            "packing_batch_code": list(self.packing_batch_code),
            "ingredient_list": self.ingredient_list,
            "supplier_name": self.supplier_name,
            "supplier_details": self.supplier_details,
            "address_of_supplier": self.address_of_supplier,
            "batch_code": self.batch_code,
            "sell_by_date": self.sell_by_date,
            "receiving_date": self.receiving_date,
            "country_of_origin": self.country_of_origin,
            "lines": [line.as_dict() for line in self.lines],
            "planned_qty": number_to_json(self.planned_qty),
            "actual_qty": number_to_json(self.actual_qty),
            "quality_score": self.quality_score,
            "notes": self.notes,
            "deviations": list(self.deviations),
            "confirmation_timestamp": self.confirmation_timestamp,
            "status": ScheduleStatus.COMPLETED.value,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> AuditRecord:
        if data.get("lines"):
            lines = tuple(IngredientAuditLine.from_dict(line) for line in data["lines"])
        else:
            lines = cls._lines_from_arrays(data)

        product_name = data.get("product_name")
        if isinstance(product_name, (list, tuple)):
            product_name = product_name[0] if product_name else ""

        planned = to_decimal(data.get("planned_qty"), Decimal("0"))
        actual = to_decimal(data.get("actual_qty"))
        record_id = data.get("id")
        return cls(
            id=_text(record_id) if record_id not in (None, "") else None,
            uid=_text(data.get("uid")),
            department=normalize_department(data.get("department")),
            date=_text(data.get("date")),
            recipe_code=_text(data.get("recipe_code")),
            product_name=_text(product_name),
            schedule_id=_text(data.get("schedule_id")),
            original_schedule_id=_text(data.get("originalScheduleId")),
            department_manager=_text(data.get("department_manager")),
            food_handler_responsible=_text(data.get("food_handler_responsible")),
            packing_batch_code=tuple(_text_list(data.get("packing_batch_code"))),
            lines=lines,
            planned_qty=planned,
            actual_qty=actual if actual is not None else planned,
            quality_score=to_int(data.get("quality_score"), 0),
            notes=_text(data.get("notes")),
            deviations=tuple(_text_list(data.get("deviations")) or ["none"]),
            confirmation_timestamp=_text(data.get("confirmation_timestamp")),
        )

    @staticmethod
    def _lines_from_arrays(data: dict) -> tuple[IngredientAuditLine, ...]:
        labels = data.get("ingredient_list") or []
        details = data.get("supplier_details") or []
        names = data.get("supplier_name") or []
        addresses = data.get("address_of_supplier") or []

        lines = []
        for index, label in enumerate(labels):
            if index < len(details) and isinstance(details[index], dict):
                supplier = SupplierDetail.from_dict(details[index])
            else:
                supplier = SupplierDetail(
                    name=_at(names, index) or SupplierDetail.UNKNOWN_NAME,
                    address=_at(addresses, index),
                )
            lines.append(
                IngredientAuditLine.from_label(
                    _text(label),
                    supplier=supplier,
                    batch_code=_at(data.get("batch_code"), index),
                    sell_by_date=_at(data.get("sell_by_date"), index),
                    receiving_date=_at(data.get("receiving_date"), index),
                    country_of_origin=_at(data.get("country_of_origin"), index),
                )
            )
        return tuple(lines)
