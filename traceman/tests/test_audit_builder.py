"""
Tests for audit record derivation (traceman.services.audit).
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from traceman.documents import Recipe, RecipeIngredient, Schedule, ScheduleItem
from traceman.exceptions import ReferentialError
from traceman.services.audit import AuditRecordBuilder

NOW = datetime(2025, 3, 1, 7, 30, tzinfo=dt_timezone.utc)
MILLIS = int(NOW.timestamp() * 1000)
STAMP = str(MILLIS)[-6:]


@pytest.fixture
def builder(catalog):
    return AuditRecordBuilder(catalog, clock=lambda: NOW)


@pytest.fixture
def item():
    return ScheduleItem(
        id="2025-03-01-R1-1",
        recipe_code="R1",
        date="2025-03-01",
        planned_qty=Decimal("20"),
        handler_name="Thabo",
    )


@pytest.fixture
def schedule(item):
    return Schedule(id="12", date="2025-03-01", department="BAKERY", manager_name="Sipho", items=[item])


class TestBuild:
    def test_one_line_per_ingredient(self, builder, item, bread_recipe, schedule):
        record = builder.build(item, bread_recipe, schedule=schedule)

        assert len(record.lines) == 3
        assert record.ingredient_list == [
            "CAKE FLOUR (4.000 from base: 0.2)",
            "WHITE SUGAR (1.000 from base: 0.05)",
            "SALT (0.200 from base: 0.01)",
        ]
        assert [line.prod_code for line in record.lines] == ["10023", "", ""]

    def test_scaling_uses_planned_quantity(self, builder, item, bread_recipe):
        item.actual_qty = Decimal("18")

        record = builder.build(item, bread_recipe, department="BAKERY")

        assert record.lines[0].scaled_quantity == Decimal("4.0")
        assert record.actual_qty == Decimal("18")
        assert record.planned_qty == Decimal("20")

    def test_suppliers_resolved(self, builder, item, bread_recipe, schedule):
        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.supplier_name == ["Golden Mills", "Sweet Co", "Unknown"]
        assert record.address_of_supplier == ["1 Mill Road, Paarl", "", ""]
        assert record.supplier_details[0]["supplier_code"] == "S100"

    def test_defaults(self, builder, item, bread_recipe, schedule):
        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.batch_code == [f"BATCH-R1-{i}-{STAMP}" for i in (1, 2, 3)]
        assert record.sell_by_date == ["2025-03-08"] * 3
        assert record.receiving_date == ["2025-03-01"] * 3
        assert record.packing_batch_code == (f"PKG-R1-{STAMP}",)
        assert record.quality_score == 3
        assert record.actual_qty == Decimal("20")
        assert record.deviations == ("none",)
        assert record.uid == f"2025-03-01-R1-{MILLIS}"
        assert record.confirmation_timestamp == NOW.isoformat()

    def test_country_of_origin(self, builder, item, bread_recipe, schedule):
        """Supplier country first, then the department default."""
        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.country_of_origin == ["South Africa", "South Africa", "South Africa"]

    def test_item_values_win(self, builder, item, bread_recipe, schedule):
        item.batch_codes = ["LOT-7", "", "LOT-9"]
        item.sell_by_dates = ["2025-04-01"]
        item.receiving_dates = ["", "2025-02-27"]
        item.quality_score = 5
        item.notes = "crust dark"

        record = builder.build(item, bread_recipe, schedule=schedule, packing_batch_code=["PK-1", "PK-2"])

        assert record.batch_code == ["LOT-7", f"BATCH-R1-2-{STAMP}", "LOT-9"]
        assert record.sell_by_date == ["2025-04-01", "2025-03-08", "2025-03-08"]
        assert record.receiving_date == ["2025-03-01", "2025-02-27", "2025-03-01"]
        assert record.quality_score == 5
        assert record.notes == "crust dark"
        assert record.packing_batch_code == ("PK-1", "PK-2")

    def test_zero_actual_quantity_kept(self, builder, item, bread_recipe, schedule):
        item.actual_qty = Decimal("0")

        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.actual_qty == Decimal("0")

    def test_supplier_override(self, builder, item, bread_recipe, schedule):
        item.ingredient_suppliers = ["", "", "Spice World"]

        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.supplier_name == ["Golden Mills", "Sweet Co", "Spice World"]
        assert record.lines[2].supplier.address == "9 Harbour St, Durban"
        assert record.country_of_origin[2] == "India"

    def test_override_outside_catalog(self, builder, item, bread_recipe, schedule):
        item.ingredient_suppliers = ["Local Farm"]

        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.supplier_name[0] == "Local Farm"
        assert record.lines[0].supplier.address == ""

    def test_declared_supplier_used_when_catalog_misses(self, item, schedule):
        recipe = Recipe(
            product_code="R1",
            description="Salted Loaf",
            department="BAKERY",
            ingredients=(RecipeIngredient("SALT", Decimal("0.01"), supplier_name="Salt Works", country_of_origin="Namibia"),),
        )

        record = AuditRecordBuilder([], clock=lambda: NOW).build(item, recipe, schedule=schedule)

        assert record.supplier_name == ["Salt Works"]
        assert record.country_of_origin == ["Namibia"]

    def test_schedule_context(self, builder, item, bread_recipe, schedule):
        record = builder.build(item, bread_recipe, schedule=schedule)

        assert record.department == "BAKERY"
        assert record.original_schedule_id == "12"
        assert record.schedule_id == item.id
        assert record.department_manager == "Sipho"
        assert record.food_handler_responsible == "Thabo"
        assert record.product_name == "White Bread"

    def test_configured_manager_without_schedule(self, builder, item, bread_recipe):
        record = builder.build(item, bread_recipe, department="BAKERY")

        assert record.department_manager == "Monica"
        assert record.original_schedule_id == ""

    def test_empty_recipe(self, builder, item):
        record = builder.build(item, Recipe(product_code="R1", department="BAKERY"), department="BAKERY")

        assert record.lines == ()
        assert record.as_dict()["ingredient_list"] == []

    def test_missing_recipe(self, builder, item):
        with pytest.raises(ReferentialError) as exc:
            builder.build(item, None)

        assert exc.value.code == "RECIPE_NOT_FOUND"
        assert exc.value.details["recipe_code"] == "R1"

    @pytest.mark.parametrize("planned", ["0", "1", "2.5", "100"])
    def test_scaled_is_base_times_planned(self, builder, bread_recipe, planned):
        item = ScheduleItem(id="x", recipe_code="R1", date="2025-03-01", planned_qty=Decimal(planned))

        record = builder.build(item, bread_recipe, department="BAKERY")

        for line, ingredient in zip(record.lines, bread_recipe.ingredients):
            assert line.scaled_quantity == ingredient.recipe_use * Decimal(planned)
