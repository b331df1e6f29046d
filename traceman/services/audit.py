"""
Audit record derivation.

Turns a completed schedule item and its recipe into an AuditRecord: one
IngredientAuditLine per recipe ingredient, with the ingredient quantity
scaled to the planned quantity, the supplier resolved from the catalog and
batch, sell-by and receiving dates filled in.

Scaling always uses `recipe_use × planned_qty`, never the actual quantity.

Usage:
    from traceman.services.audit import AuditRecordBuilder

    builder = AuditRecordBuilder(catalog_rows)
    record = builder.build(item, recipe, schedule=schedule)
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.utils import timezone

from traceman.conf import get_setting
from traceman.departments import country_for, manager_for, normalize_department
from traceman.documents import (
    AuditRecord,
    IngredientAuditLine,
    Recipe,
    RecipeIngredient,
    Schedule,
    ScheduleItem,
    SupplierDetail,
)
from traceman.exceptions import ReferentialError
from traceman.services.suppliers import SupplierMatcher

logger = logging.getLogger(__name__)


def _local_date(now: datetime) -> date:
    if timezone.is_aware(now):
        return timezone.localtime(now).date()
    return now.date()


def _epoch_millis(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def _provided(values: list[str], index: int) -> str:
    if index < len(values) and values[index]:
        return str(values[index]).strip()
    return ""


def declared_supplier(ingredient: RecipeIngredient) -> SupplierDetail | None:
    """Supplier written on the recipe itself, if any."""
    if not ingredient.supplier_name:
        return None
    return SupplierDetail(
        name=ingredient.supplier_name,
        supplier_code=ingredient.supplier_code,
        address=ingredient.supplier_address,
        product_code=ingredient.prod_code,
        description=ingredient.description,
        country_of_origin=ingredient.country_of_origin,
    )


class AuditRecordBuilder:
    """
    Builds traceability records for completed production runs.

    Args:
        catalog_rows: Supplier catalog used for supplier resolution
        clock: Callable returning the current datetime
    """

    def __init__(self, catalog_rows=(), clock=timezone.now):
        self.matcher = SupplierMatcher(catalog_rows)
        self.clock = clock

    def resolve_supplier(
        self,
        item: ScheduleItem,
        ingredient: RecipeIngredient,
        index: int,
        department: str,
    ) -> SupplierDetail:
        """
        Supplier of one ingredient.

        Priority: the item's supplier override at this index, the catalog
        match, the supplier declared on the recipe, then Unknown.
        """
        override = _provided(item.ingredient_suppliers, index)
        if override:
            return self.matcher.by_name(override) or SupplierDetail(
                name=override,
                description=ingredient.description,
            )

        detail = self.matcher.find(ingredient.search_text, department)
        if detail is not None:
            return detail

        detail = declared_supplier(ingredient)
        if detail is not None:
            return detail

        logger.debug(
            f"No supplier for {ingredient.description!r} ({department}), using Unknown",
            extra={"recipe_code": item.recipe_code, "ingredient": ingredient.description},
        )
        return SupplierDetail.unknown()

    def build(
        self,
        item: ScheduleItem,
        recipe: Recipe | None,
        *,
        schedule: Schedule | None = None,
        department: str | None = None,
        packing_batch_code: list[str] | None = None,
    ) -> AuditRecord:
        """
        Build the audit record of a completed item.

        Raises:
            ReferentialError: RECIPE_NOT_FOUND when `recipe` is None
        """
        if recipe is None:
            raise ReferentialError(
                "RECIPE_NOT_FOUND",
                f"Recipe {item.recipe_code} not found for item {item.id}",
                recipe_code=item.recipe_code,
                item=item.id,
            )

        now = self.clock()
        millis = _epoch_millis(now)
        stamp = str(millis)[-6:]
        today = _local_date(now)
        sell_by_default = (today + timedelta(days=get_setting("SELL_BY_DAYS"))).isoformat()
        recipe_code = item.recipe_code or recipe.product_code

        if schedule is not None:
            dept = schedule.department
        else:
            dept = normalize_department(department or recipe.department)

        lines = []
        for index, ingredient in enumerate(recipe.ingredients):
            base = ingredient.recipe_use if ingredient.recipe_use is not None else Decimal("0")
            supplier = self.resolve_supplier(item, ingredient, index, dept)
            lines.append(
                IngredientAuditLine(
                    description=ingredient.description,
                    base_quantity=base,
                    scaled_quantity=base * item.planned_qty,
                    supplier=supplier,
                    batch_code=_provided(item.batch_codes, index)
                    or f"BATCH-{recipe_code}-{index + 1}-{stamp}",
                    sell_by_date=_provided(item.sell_by_dates, index) or sell_by_default,
                    receiving_date=_provided(item.receiving_dates, index) or today.isoformat(),
                    country_of_origin=supplier.country_of_origin
                    or ingredient.country_of_origin
                    or country_for(dept),
                    prod_code=ingredient.prod_code,
                )
            )

        manager = item.manager_name or (schedule.manager_name if schedule else "") or manager_for(dept)
        quality = item.quality_score
        if quality is None:
            quality = get_setting("DEFAULT_QUALITY_SCORE")

        record = AuditRecord(
            uid=f"{item.date}-{recipe_code}-{millis}",
            department=dept,
            date=item.date,
            recipe_code=recipe_code,
            product_name=item.product_description or recipe.description,
            schedule_id=item.id,
            original_schedule_id=(schedule.id or "") if schedule else "",
            department_manager=manager,
            food_handler_responsible=item.handler_name,
            packing_batch_code=tuple(packing_batch_code or [f"PKG-{recipe_code}-{stamp}"]),
            lines=tuple(lines),
            planned_qty=item.planned_qty,
            actual_qty=item.actual_qty if item.actual_qty is not None else item.planned_qty,
            quality_score=quality,
            notes=item.notes,
            deviations=tuple(item.deviations or ["none"]),
            confirmation_timestamp=now.isoformat(),
        )

        logger.info(
            f"Built audit {record.uid} with {len(lines)} ingredient lines",
            extra={
                "uid": record.uid,
                "recipe_code": recipe_code,
                "department": dept,
                "unknown_suppliers": sum(1 for line in lines if line.supplier.is_unknown),
            },
        )
        return record
