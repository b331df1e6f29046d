"""
Traceman Models.

Persistent documents and reference data:
- Recipe / RecipeIngredient: what a schedule item produces and consumes
- Staff: food handlers and managers per department
- SupplierProduct: department supplier catalog rows
- Schedule: one department's production items for one date
- ProductionAudit: traceability record of a completed production run
"""

from traceman.models.audit import ProductionAudit
from traceman.models.recipe import Recipe, RecipeIngredient
from traceman.models.schedule import Schedule
from traceman.models.staff import Staff, StaffRole
from traceman.models.supplier import SupplierProduct

__all__ = [
    "Recipe",
    "RecipeIngredient",
    "Staff",
    "StaffRole",
    "SupplierProduct",
    "Schedule",
    "ProductionAudit",
]
