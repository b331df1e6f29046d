"""
Tests for department caches (traceman.cache).
"""

from unittest import mock

import pytest

from traceman.cache import DepartmentCache, DepartmentDirectory
from traceman.documents import Recipe


class TestDepartmentCache:
    def test_get_set(self):
        cache = DepartmentCache("recipes")
        cache.set("BAKERY", ["r1"])

        assert cache.get("BAKERY") == ["r1"]
        assert cache.get("HMR") is None

    def test_invalidate_one(self):
        cache = DepartmentCache("recipes")
        cache.set("BAKERY", [1])
        cache.set("HMR", [2])

        cache.invalidate("BAKERY")

        assert cache.get("BAKERY") is None
        assert cache.get("HMR") == [2]

    def test_invalidate_all(self):
        cache = DepartmentCache("recipes")
        cache.set("BAKERY", [1])
        cache.set(None, [3])

        cache.invalidate()

        assert cache.get("BAKERY") is None
        assert cache.get(None) is None

    def test_instances_are_isolated(self):
        first = DepartmentCache("recipes")
        second = DepartmentCache("recipes")
        first.set("BAKERY", [1])

        assert second.get("BAKERY") is None


class TestDepartmentDirectory:
    @pytest.fixture
    def directory(self, memory_store):
        return DepartmentDirectory(memory_store)

    def test_store_hit_once(self, directory, memory_store):
        with mock.patch.object(memory_store, "fetch_recipes", wraps=memory_store.fetch_recipes) as fetch:
            directory.recipes("bakery")
            directory.recipes("BAKERY")
            directory.recipes("1154")

        fetch.assert_called_once_with("BAKERY")

    def test_recipe_lookup(self, directory):
        assert directory.recipe("BAKERY", "R1").description == "White Bread"
        assert directory.recipe("BAKERY", "NOPE") is None

    def test_refresh_reloads(self, directory, memory_store):
        directory.recipes("BAKERY")
        memory_store.recipes.append(Recipe("R2", "Rye", "BAKERY"))

        assert directory.recipe("BAKERY", "R2") is None
        directory.refresh("BAKERY")
        assert directory.recipe("BAKERY", "R2").description == "Rye"

    def test_handlers_and_managers(self, directory):
        assert [s.name for s in directory.handlers("BAKERY")] == ["Thabo"]
        assert directory.managers("BAKERY") == ["Monica"]
        assert directory.managers("BUTCHERY") == ["Clive"]

    def test_catalog_spans_departments(self, directory, catalog):
        assert directory.catalog() == catalog
