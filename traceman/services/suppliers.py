"""
Supplier matching.

Finds the catalog row that supplies a recipe ingredient. Ingredient texts
often embed the ingredient product code as a trailing parenthesized token:

    "FROZEN MDM (25kg)"      code "25kg", name "FROZEN MDM"
    "CAKE FLOUR (10023)"     code "10023", name "CAKE FLOUR"

Matching order, within the department first and then across all
departments:
    1. exact ingredient product code
    2. case-insensitive substring between name and product description,
       in either direction

Catalog order breaks ties. Everything here is pure; loading the catalog is
the caller's job.

Usage:
    from traceman.services.suppliers import SupplierMatcher

    matcher = SupplierMatcher(rows)
    detail = matcher.match("CAKE FLOUR (10023)", "BAKERY")
"""

from __future__ import annotations

import csv
import logging
import re
from typing import Iterable

from traceman.departments import normalize_department
from traceman.documents import SupplierDetail, SupplierRecord

logger = logging.getLogger(__name__)

_TRAILING_TOKEN = re.compile(r"\(([^()]*)\)\s*$")


def extract_ingredient_info(text: str | None) -> tuple[str, str]:
    """
    Split an ingredient text into (code, cleaned name).

    The code is the trailing parenthesized token, or "" when there is none.
    """
    if not text:
        return "", ""
    text = str(text).strip()
    match = _TRAILING_TOKEN.search(text)
    if not match:
        return "", text
    return match.group(1).strip(), text[: match.start()].strip()


def _code_match(code: str, rows: list[SupplierRecord]) -> SupplierRecord | None:
    if not code:
        return None
    for row in rows:
        if row.ingredient_product_code and row.ingredient_product_code == code:
            return row
    return None


def _name_match(name: str, rows: list[SupplierRecord]) -> SupplierRecord | None:
    if not name:
        return None
    needle = name.upper()
    for row in rows:
        description = row.product_description.upper()
        if not description:
            continue
        if needle in description or description in needle:
            return row
    return None


def find_supplier(
    ingredient_text: str | None,
    department,
    catalog_rows: Iterable[SupplierRecord],
    ignore_department: bool = False,
) -> SupplierDetail | None:
    """
    Find the supplier of an ingredient.

    Args:
        ingredient_text: Ingredient description, optionally with a trailing
            "(code)" token
        department: Department tag, name or numeric code
        catalog_rows: Supplier catalog, in priority order
        ignore_department: Search every department at once

    Returns:
        SupplierDetail of the first matching row, or None
    """
    if not ingredient_text or not str(ingredient_text).strip():
        return None
    rows = list(catalog_rows)
    if not rows:
        return None

    code, name = extract_ingredient_info(ingredient_text)
    dept = normalize_department(department)

    candidates = rows if ignore_department else [r for r in rows if r.department == dept]

    row = _code_match(code, candidates) or _name_match(name, candidates)
    if row is not None:
        return SupplierDetail.from_record(row)

    if not ignore_department:
        return find_supplier(ingredient_text, dept, rows, ignore_department=True)

    return None


def find_supplier_by_name(name: str | None, catalog_rows: Iterable[SupplierRecord]) -> SupplierDetail | None:
    """First row whose supplier name equals `name`, ignoring case."""
    if not name or not str(name).strip():
        return None
    wanted = str(name).strip().upper()
    for row in catalog_rows:
        if row.supplier_name.strip().upper() == wanted:
            return SupplierDetail.from_record(row)
    return None


class SupplierMatcher:
    """Supplier lookups bound to one catalog snapshot."""

    def __init__(self, catalog_rows: Iterable[SupplierRecord]):
        self.rows = list(catalog_rows)

    def find(self, ingredient_text: str | None, department) -> SupplierDetail | None:
        return find_supplier(ingredient_text, department, self.rows)

    def by_name(self, name: str | None) -> SupplierDetail | None:
        return find_supplier_by_name(name, self.rows)

    def match(self, ingredient_text: str | None, department) -> SupplierDetail:
        """Like `find`, but a miss degrades to the Unknown placeholder."""
        detail = self.find(ingredient_text, department)
        if detail is None:
            logger.debug(
                f"No supplier for {ingredient_text!r} in {department}",
                extra={"ingredient": ingredient_text, "department": department},
            )
            return SupplierDetail.unknown()
        return detail


def parse_catalog_csv(stream, department) -> list[SupplierRecord]:
    """
    Read a department supplier catalog CSV.

    Header names are matched case-insensitively; rows without a supplier
    name or code are skipped.

    Args:
        stream: Text file object or iterable of lines
        department: Department the rows belong to
    """
    dept = normalize_department(department)
    reader = csv.DictReader(stream)
    rows = []
    for raw in reader:
        data = {
            (key or "").strip().lower(): (value or "").strip()
            for key, value in raw.items()
            if isinstance(value, str) or value is None
        }
        if not data.get("supplier_name") and not data.get("supplier_code"):
            continue
        rows.append(SupplierRecord.from_dict(data, department=dept))
    logger.info(
        f"Parsed {len(rows)} supplier rows for {dept}",
        extra={"department": dept, "rows": len(rows)},
    )
    return rows
