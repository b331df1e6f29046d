"""
Traceman Admin: Django admin for recipes, staff, supplier catalog,
schedules and audit records.

Schedules and audit records use SimpleHistoryAdmin so every stored revision
(including supplier backfills) can be inspected.
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from simple_history.admin import SimpleHistoryAdmin

from traceman.models import ProductionAudit, Recipe, RecipeIngredient, Schedule, Staff, SupplierProduct
from traceman.status import label_for


# ── Recipe ──


class RecipeIngredientInline(admin.TabularInline):
    """Inline for recipe ingredients."""

    model = RecipeIngredient
    extra = 1
    fields = ("position", "description", "recipe_use", "prod_code", "supplier_name", "country_of_origin")


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("product_code", "description", "department", "is_active")
    list_filter = ("department", "is_active")
    search_fields = ("product_code", "description")
    inlines = [RecipeIngredientInline]
    readonly_fields = ("created_at", "updated_at")


# ── Staff ──


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("name", "department", "role", "is_active")
    list_filter = ("department", "role", "is_active")
    search_fields = ("name", "email")


# ── Supplier catalog ──


@admin.register(SupplierProduct)
class SupplierProductAdmin(admin.ModelAdmin):
    list_display = ("supplier_name", "product_description", "ingredient_product_code", "department")
    list_filter = ("department",)
    search_fields = ("supplier_name", "supplier_code", "product_description", "ingredient_product_code")


# ── Schedule ──


@admin.register(Schedule)
class ScheduleAdmin(SimpleHistoryAdmin):
    list_display = ("date", "department", "manager_name", "item_count", "statuses")
    list_filter = ("department",)
    date_hierarchy = "date"
    readonly_fields = ("items", "created_at", "updated_at")

    @admin.display(description=_("Statuses"))
    def statuses(self, obj):
        return ", ".join(label_for(item.get("status")) for item in obj.items or [])


# ── ProductionAudit ──


@admin.register(ProductionAudit)
class ProductionAuditAdmin(SimpleHistoryAdmin):
    list_display = ("uid", "date", "department", "product_name", "actual_qty", "quality_score", "ingredient_count")
    list_filter = ("department", "date")
    search_fields = ("uid", "recipe_code", "product_name")
    date_hierarchy = "date"
    readonly_fields = ("created_at",)
