"""
Shared fixtures for Traceman tests.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.core.cache import cache

from traceman.adapters.memory import InMemoryDocumentStore
from traceman.documents import Recipe, RecipeIngredient, Staff, SupplierRecord


class FakeClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start=datetime(2025, 3, 1, 7, 30, tzinfo=dt_timezone.utc)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    return [
        SupplierRecord(
            supplier_code="S100",
            supplier_name="Golden Mills",
            product_description="CAKE FLOUR 10KG",
            ingredient_product_code="10023",
            pack_size="10kg",
            address="1 Mill Road, Paarl",
            department="BAKERY",
            country_of_origin="South Africa",
        ),
        SupplierRecord(
            supplier_code="S200",
            supplier_name="Spice World",
            product_description="IMPORTED SPICE MIX",
            ingredient_product_code="999",
            pack_size="1kg",
            address="9 Harbour St, Durban",
            department="BUTCHERY",
            country_of_origin="India",
        ),
        SupplierRecord(
            supplier_code="S300",
            supplier_name="Sweet Co",
            product_description="WHITE SUGAR",
            ingredient_product_code="20001",
            department="BAKERY",
        ),
    ]


@pytest.fixture
def bread_recipe():
    return Recipe(
        product_code="R1",
        description="White Bread",
        department="BAKERY",
        ingredients=(
            RecipeIngredient(description="CAKE FLOUR", recipe_use=Decimal("0.2"), prod_code="10023"),
            RecipeIngredient(description="WHITE SUGAR", recipe_use=Decimal("0.05")),
            RecipeIngredient(description="SALT", recipe_use=Decimal("0.01")),
        ),
    )


@pytest.fixture
def memory_store(catalog, bread_recipe):
    return InMemoryDocumentStore(
        recipes=[bread_recipe],
        staff=[
            Staff(id="1", name="Thabo", department="BAKERY", role="Handler"),
            Staff(id="2", name="Monica", department="BAKERY", role="Manager"),
        ],
        catalog=catalog,
    )


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
