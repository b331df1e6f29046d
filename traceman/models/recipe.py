"""
Recipe and RecipeIngredient models.

Recipe = reference data for a producible product (keyed by product_code).
RecipeIngredient = one ingredient line; `recipe_use` is the quantity needed
to produce ONE unit of the recipe, scaled by the planned quantity when an
audit record is built.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from traceman.documents import Recipe as RecipeDocument
from traceman.documents import RecipeIngredient as IngredientDocument


class Recipe(models.Model):
    """Recipe of a department product."""

    product_code = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_("Product Code"),
        help_text=_("Code referenced by schedule items (recipeCode)"),
    )
    description = models.CharField(
        max_length=200,
        verbose_name=_("Description"),
    )
    department = models.CharField(
        max_length=20,
        db_index=True,
        verbose_name=_("Department"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        db_table = "traceman_recipe"
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ["description"]

    def __str__(self) -> str:
        return f"{self.description} ({self.product_code})"

    def to_document(self) -> RecipeDocument:
        return RecipeDocument(
            product_code=self.product_code,
            description=self.description,
            department=self.department,
            ingredients=tuple(i.to_document() for i in self.ingredients.all()),
        )


class RecipeIngredient(models.Model):
    """
    Ingredient line of a recipe.

    Supplier fields are optional declarations used when the supplier
    catalog has no match for the ingredient.
    """

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name="ingredients",
        verbose_name=_("Recipe"),
    )
    position = models.PositiveSmallIntegerField(
        default=0,
        verbose_name=_("Position"),
        help_text=_("Order of the ingredient; audit lines follow it"),
    )
    description = models.CharField(
        max_length=200,
        verbose_name=_("Description"),
    )
    recipe_use = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        verbose_name=_("Recipe Use"),
        help_text=_("Quantity per one unit of the recipe"),
    )
    prod_code = models.CharField(
        max_length=50,
        blank=True,
        verbose_name=_("Ingredient Product Code"),
    )

    # Declared supplier
    supplier_name = models.CharField(max_length=200, blank=True, verbose_name=_("Supplier"))
    supplier_code = models.CharField(max_length=50, blank=True, verbose_name=_("Supplier Code"))
    supplier_address = models.CharField(max_length=300, blank=True, verbose_name=_("Supplier Address"))
    country_of_origin = models.CharField(max_length=100, blank=True, verbose_name=_("Country of Origin"))

    class Meta:
        db_table = "traceman_recipe_ingredient"
        verbose_name = _("Ingredient")
        verbose_name_plural = _("Ingredients")
        ordering = ["recipe", "position", "id"]

    def clean(self):
        super().clean()
        if self.recipe_use is not None and self.recipe_use < 0:
            raise ValidationError({"recipe_use": _("Must not be negative.")})

    def __str__(self) -> str:
        return f"{self.description} ({self.recipe_use})"

    def to_document(self) -> IngredientDocument:
        return IngredientDocument(
            description=self.description,
            recipe_use=self.recipe_use,
            prod_code=self.prod_code,
            supplier_name=self.supplier_name,
            supplier_code=self.supplier_code,
            supplier_address=self.supplier_address,
            country_of_origin=self.country_of_origin,
        )
