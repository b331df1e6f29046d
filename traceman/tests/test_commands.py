"""
Tests for traceman management commands and admin registration.
"""

from decimal import Decimal
from io import StringIO

import pytest
from django.contrib import admin
from django.core.management import CommandError, call_command

from traceman.adapters.orm import OrmDocumentStore
from traceman.documents import Schedule, ScheduleItem
from traceman.models import ProductionAudit, Recipe, RecipeIngredient, SupplierProduct
from traceman.models import Schedule as ScheduleModel
from traceman.services.audit import AuditRecordBuilder
from traceman.status import ScheduleStatus


pytestmark = pytest.mark.django_db

CSV = (
    "Supplier_Code,Supplier_Name,Product_Description,Ing.Prod_Code\n"
    "S100,Golden Mills,CAKE FLOUR 10KG,10023\n"
    "S300,Sweet Co,WHITE SUGAR,\n"
)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "Bakery.csv"
    path.write_text(CSV, encoding="utf-8")
    return path


@pytest.fixture
def recipe():
    recipe = Recipe.objects.create(product_code="R1", description="White Bread", department="BAKERY")
    RecipeIngredient.objects.create(recipe=recipe, position=1, description="CAKE FLOUR", recipe_use=Decimal("0.2"))
    return recipe


class TestLoadSupplierCatalog:
    def test_load(self, csv_file):
        out = StringIO()
        call_command("load_supplier_catalog", str(csv_file), department="1154", stdout=out)

        assert SupplierProduct.objects.filter(department="BAKERY").count() == 2
        assert "Loaded 2 supplier rows for BAKERY" in out.getvalue()

    def test_replace(self, csv_file):
        call_command("load_supplier_catalog", str(csv_file), department="BAKERY", stdout=StringIO())
        call_command("load_supplier_catalog", str(csv_file), department="BAKERY", replace=True, stdout=StringIO())

        assert SupplierProduct.objects.count() == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommandError):
            call_command("load_supplier_catalog", str(tmp_path / "none.csv"), department="BAKERY")


class TestBackfillCommand:
    def test_backfill(self, csv_file, recipe):
        store = OrmDocumentStore()
        item = ScheduleItem(id="a", recipe_code="R1", date="2025-03-01", planned_qty=Decimal("5"))
        store.save_audit(AuditRecordBuilder([]).build(item, recipe.to_document(), department="BAKERY"))
        call_command("load_supplier_catalog", str(csv_file), department="BAKERY", stdout=StringIO())

        out = StringIO()
        call_command("backfill_audit_suppliers", department="bakery", stdout=out)

        assert store.fetch_audits("BAKERY")[0].supplier_name == ["Golden Mills"]
        assert "updated 1 audits (1 lines)" in out.getvalue()


class TestConvertCommand:
    def test_convert(self, recipe):
        OrmDocumentStore().save_schedule(
            "BAKERY",
            Schedule(
                date="2025-03-01",
                department="BAKERY",
                items=[ScheduleItem(id="a", recipe_code="R1", date="2025-03-01", status=ScheduleStatus.COMPLETED)],
            ),
        )

        out = StringIO()
        call_command("convert_completed_to_audits", department="BAKERY", stdout=out)

        assert ProductionAudit.objects.get().schedule_id == "a"
        assert ScheduleModel.objects.count() == 0
        assert "converted 1" in out.getvalue()


class TestAdmin:
    def test_models_registered(self):
        for model in (Recipe, SupplierProduct, ScheduleModel, ProductionAudit):
            assert admin.site.is_registered(model)
