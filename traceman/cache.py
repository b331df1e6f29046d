"""
Traceman department caches.

Recipes, staff and the supplier catalog are reference data that many
operations read and few change. They are cached per department in the
Django cache framework, behind an explicit object whose lifetime belongs
to whoever created it:

    recipes = DepartmentCache("recipes")
    recipes.set("BAKERY", [...])
    recipes.get("BAKERY")
    recipes.invalidate("BAKERY")   # or invalidate() for every department

Two DepartmentCache instances never see each other's entries, even with
the same namespace.
"""

import logging
import uuid

from django.core.cache import caches

from traceman.conf import get_setting
from traceman.departments import normalize_department
from traceman.documents import StaffRole

logger = logging.getLogger(__name__)

_ALL = "*"


class DepartmentCache:
    """get/set/invalidate cache of values keyed by department."""

    def __init__(self, namespace: str, backend=None, timeout: int | None = None):
        self.namespace = namespace
        self.backend = backend if backend is not None else caches[get_setting("CACHE_ALIAS")]
        self.timeout = timeout if timeout is not None else get_setting("CACHE_TIMEOUT")
        self._token = uuid.uuid4().hex[:12]
        self._departments: set[str] = set()

    def _key(self, department: str | None) -> str:
        return f"traceman:{self.namespace}:{self._token}:{department or _ALL}"

    def get(self, department: str | None):
        """Cached value, or None on a miss."""
        return self.backend.get(self._key(department))

    def set(self, department: str | None, value) -> None:
        self.backend.set(self._key(department), value, self.timeout)
        self._departments.add(department or _ALL)

    def invalidate(self, department: str | None = None) -> None:
        """Drop one department, or every department when None."""
        if department is None:
            keys = [self._key(d) for d in self._departments]
            self.backend.delete_many(keys)
            self._departments.clear()
            logger.debug(f"Cache {self.namespace} cleared", extra={"namespace": self.namespace})
            return
        self.backend.delete(self._key(department))
        self._departments.discard(department)


class DepartmentDirectory:
    """
    Cached read access to a document store's reference data.

    The store is only hit on a cache miss; `refresh()` drops the cached
    data of one department so the next read reloads it.
    """

    def __init__(
        self,
        store,
        recipe_cache: DepartmentCache | None = None,
        staff_cache: DepartmentCache | None = None,
        catalog_cache: DepartmentCache | None = None,
    ):
        self.store = store
        self.recipe_cache = recipe_cache or DepartmentCache("recipes")
        self.staff_cache = staff_cache or DepartmentCache("staff")
        self.catalog_cache = catalog_cache or DepartmentCache("catalog")

    def recipes(self, department: str) -> list:
        department = normalize_department(department)
        cached = self.recipe_cache.get(department)
        if cached is not None:
            return cached
        recipes = self.store.fetch_recipes(department)
        self.recipe_cache.set(department, recipes)
        return recipes

    def recipe(self, department: str, product_code: str):
        """Recipe with this product code, or None."""
        for recipe in self.recipes(department):
            if recipe.product_code == product_code:
                return recipe
        return None

    def staff(self, department: str) -> list:
        department = normalize_department(department)
        cached = self.staff_cache.get(department)
        if cached is not None:
            return cached
        staff = self.store.fetch_handlers(department)
        self.staff_cache.set(department, staff)
        return staff

    def handlers(self, department: str) -> list:
        return [s for s in self.staff(department) if s.role != StaffRole.MANAGER]

    def managers(self, department: str) -> list[str]:
        """Manager names: staff with the Manager role plus the configured manager."""
        names = [s.name for s in self.staff(department) if s.role == StaffRole.MANAGER]
        configured = get_setting("DEPARTMENT_MANAGERS").get(normalize_department(department))
        if configured and configured not in names:
            names.append(configured)
        return names

    def catalog(self) -> list:
        """Full supplier catalog (matching needs every department)."""
        cached = self.catalog_cache.get(None)
        if cached is not None:
            return cached
        rows = self.store.fetch_supplier_catalog()
        self.catalog_cache.set(None, rows)
        return rows

    def refresh(self, department: str | None = None) -> None:
        if department is not None:
            department = normalize_department(department)
        self.recipe_cache.invalidate(department)
        self.staff_cache.invalidate(department)
        self.catalog_cache.invalidate()
