# Generated manually for the initial traceman schema

from decimal import Decimal

import django.db.models.deletion
import simple_history.models
from django.conf import settings
from django.db import migrations, models


def _history_fields():
    return [
        ("history_id", models.AutoField(primary_key=True, serialize=False)),
        ("history_date", models.DateTimeField(db_index=True)),
        ("history_change_reason", models.CharField(max_length=100, null=True)),
        (
            "history_type",
            models.CharField(
                choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                max_length=1,
            ),
        ),
        (
            "history_user",
            models.ForeignKey(
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def _history_options(name, plural):
    return {
        "verbose_name": f"historical {name}",
        "verbose_name_plural": f"historical {plural}",
        "ordering": ("-history_date", "-history_id"),
        "get_latest_by": ("history_date", "history_id"),
    }


def _schedule_fields(historical=False):
    return [
        ("department", models.CharField(db_index=True, max_length=20, verbose_name="Department")),
        ("date", models.DateField(db_index=True, verbose_name="Date")),
        ("manager_name", models.CharField(blank=True, max_length=120, verbose_name="Manager")),
        ("handlers_names", models.CharField(blank=True, max_length=500, verbose_name="Handlers")),
        (
            "items",
            models.JSONField(
                blank=True,
                default=list,
                help_text="Schedule items with their change history",
                verbose_name="Items",
            ),
        ),
        (
            "created_at",
            models.DateTimeField(blank=True, editable=False)
            if historical
            else models.DateTimeField(auto_now_add=True, verbose_name="created at"),
        ),
        (
            "updated_at",
            models.DateTimeField(blank=True, editable=False)
            if historical
            else models.DateTimeField(auto_now=True, verbose_name="updated at"),
        ),
    ]


def _audit_fields(historical=False):
    return [
        (
            "uid",
            models.CharField(
                db_index=historical,
                unique=not historical,
                help_text="{date}-{recipeCode}-{timestamp}",
                max_length=120,
                verbose_name="UID",
            ),
        ),
        ("department", models.CharField(db_index=True, max_length=20, verbose_name="Department")),
        ("date", models.DateField(db_index=True, verbose_name="Production Date")),
        ("recipe_code", models.CharField(db_index=True, max_length=50, verbose_name="Recipe Code")),
        ("product_name", models.CharField(blank=True, max_length=200, verbose_name="Product")),
        ("schedule_id", models.CharField(blank=True, db_index=True, max_length=120, verbose_name="Schedule Item")),
        ("original_schedule_id", models.CharField(blank=True, max_length=50, verbose_name="Schedule")),
        ("department_manager", models.CharField(blank=True, max_length=120, verbose_name="Manager")),
        ("food_handler_responsible", models.CharField(blank=True, max_length=120, verbose_name="Food Handler")),
        ("packing_batch_code", models.JSONField(blank=True, default=list, verbose_name="Packing Batch Codes")),
        (
            "lines",
            models.JSONField(
                blank=True,
                default=list,
                help_text="One entry per recipe ingredient, in recipe order",
                verbose_name="Ingredient Lines",
            ),
        ),
        ("planned_qty", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=12, verbose_name="Planned")),
        ("actual_qty", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=12, verbose_name="Actual")),
        ("quality_score", models.PositiveSmallIntegerField(default=0, verbose_name="Quality Score")),
        ("notes", models.TextField(blank=True, verbose_name="Notes")),
        ("deviations", models.JSONField(blank=True, default=list, verbose_name="Deviations")),
        ("confirmation_timestamp", models.CharField(blank=True, max_length=40, verbose_name="Confirmed At")),
        (
            "created_at",
            models.DateTimeField(blank=True, editable=False)
            if historical
            else models.DateTimeField(auto_now_add=True, verbose_name="created at"),
        ),
    ]


def _id(historical=False):
    if historical:
        return ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID"))
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Recipe",
            fields=[
                _id(),
                (
                    "product_code",
                    models.CharField(
                        help_text="Code referenced by schedule items (recipeCode)",
                        max_length=50,
                        unique=True,
                        verbose_name="Product Code",
                    ),
                ),
                ("description", models.CharField(max_length=200, verbose_name="Description")),
                ("department", models.CharField(db_index=True, max_length=20, verbose_name="Department")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "Recipe",
                "verbose_name_plural": "Recipes",
                "db_table": "traceman_recipe",
                "ordering": ["description"],
            },
        ),
        migrations.CreateModel(
            name="RecipeIngredient",
            fields=[
                _id(),
                (
                    "position",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Order of the ingredient; audit lines follow it",
                        verbose_name="Position",
                    ),
                ),
                ("description", models.CharField(max_length=200, verbose_name="Description")),
                (
                    "recipe_use",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Quantity per one unit of the recipe",
                        max_digits=12,
                        verbose_name="Recipe Use",
                    ),
                ),
                ("prod_code", models.CharField(blank=True, max_length=50, verbose_name="Ingredient Product Code")),
                ("supplier_name", models.CharField(blank=True, max_length=200, verbose_name="Supplier")),
                ("supplier_code", models.CharField(blank=True, max_length=50, verbose_name="Supplier Code")),
                ("supplier_address", models.CharField(blank=True, max_length=300, verbose_name="Supplier Address")),
                ("country_of_origin", models.CharField(blank=True, max_length=100, verbose_name="Country of Origin")),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ingredients",
                        to="traceman.recipe",
                        verbose_name="Recipe",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ingredient",
                "verbose_name_plural": "Ingredients",
                "db_table": "traceman_recipe_ingredient",
                "ordering": ["recipe", "position", "id"],
            },
        ),
        migrations.CreateModel(
            name="Staff",
            fields=[
                _id(),
                ("name", models.CharField(max_length=120, verbose_name="Name")),
                ("department", models.CharField(db_index=True, max_length=20, verbose_name="Department")),
                (
                    "role",
                    models.CharField(
                        choices=[("Handler", "Handler"), ("Manager", "Manager")],
                        default="Handler",
                        max_length=20,
                        verbose_name="Role",
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=40, verbose_name="Phone")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
            ],
            options={
                "verbose_name": "Staff Member",
                "verbose_name_plural": "Staff",
                "db_table": "traceman_staff",
                "ordering": ["department", "name"],
            },
        ),
        migrations.CreateModel(
            name="SupplierProduct",
            fields=[
                _id(),
                ("department", models.CharField(db_index=True, max_length=20, verbose_name="Department")),
                ("supplier_code", models.CharField(max_length=50, verbose_name="Supplier Code")),
                ("supplier_name", models.CharField(max_length=200, verbose_name="Supplier")),
                ("product_description", models.CharField(blank=True, max_length=300, verbose_name="Product Description")),
                (
                    "ingredient_product_code",
                    models.CharField(blank=True, db_index=True, max_length=50, verbose_name="Ingredient Product Code"),
                ),
                ("supplier_product_code", models.CharField(blank=True, max_length=50, verbose_name="Supplier Product Code")),
                ("pack_size", models.CharField(blank=True, max_length=50, verbose_name="Pack Size")),
                ("address", models.CharField(blank=True, max_length=300, verbose_name="Address")),
                ("country_of_origin", models.CharField(blank=True, max_length=100, verbose_name="Country of Origin")),
                ("ean", models.CharField(blank=True, max_length=20, verbose_name="EAN")),
                ("contact_person", models.CharField(blank=True, max_length=120, verbose_name="Contact Person")),
                ("email", models.CharField(blank=True, max_length=200, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=40, verbose_name="Phone")),
            ],
            options={
                "verbose_name": "Supplier Product",
                "verbose_name_plural": "Supplier Products",
                "db_table": "traceman_supplier_product",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="Schedule",
            fields=[_id(), *_schedule_fields()],
            options={
                "verbose_name": "Schedule",
                "verbose_name_plural": "Schedules",
                "db_table": "traceman_schedule",
                "ordering": ["date", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="schedule",
            constraint=models.UniqueConstraint(
                fields=("department", "date"),
                name="traceman_schedule_department_date",
            ),
        ),
        migrations.CreateModel(
            name="HistoricalSchedule",
            fields=[_id(historical=True), *_schedule_fields(historical=True), *_history_fields()],
            options=_history_options("Schedule", "Schedules"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="ProductionAudit",
            fields=[_id(), *_audit_fields()],
            options={
                "verbose_name": "Production Audit",
                "verbose_name_plural": "Production Audits",
                "db_table": "traceman_production_audit",
                "ordering": ["-date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalProductionAudit",
            fields=[_id(historical=True), *_audit_fields(historical=True), *_history_fields()],
            options=_history_options("Production Audit", "Production Audits"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
