"""
Tests for supplier matching (traceman.services.suppliers).
"""

import io

import pytest

from traceman.documents import SupplierRecord
from traceman.services.suppliers import (
    SupplierMatcher,
    extract_ingredient_info,
    find_supplier,
    find_supplier_by_name,
    parse_catalog_csv,
)


class TestExtractIngredientInfo:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("FROZEN MDM (25kg)", ("25kg", "FROZEN MDM")),
            ("CAKE FLOUR (10023)", ("10023", "CAKE FLOUR")),
            ("SALT", ("", "SALT")),
            ("  SALT  ", ("", "SALT")),
            ("", ("", "")),
            (None, ("", "")),
            ("SAUCE (HOT) MIX", ("", "SAUCE (HOT) MIX")),
        ],
    )
    def test_split(self, text, expected):
        assert extract_ingredient_info(text) == expected


class TestFindSupplier:
    def test_code_match_within_department(self, catalog):
        detail = find_supplier("CAKE FLOUR (10023)", "BAKERY", catalog)

        assert detail.name == "Golden Mills"
        assert detail.supplier_code == "S100"
        assert detail.address == "1 Mill Road, Paarl"
        assert detail.product_code == "10023"

    def test_code_beats_name(self, catalog):
        """Exact code wins even when another row matches the name."""
        detail = find_supplier("WHITE SUGAR (10023)", "BAKERY", catalog)
        assert detail.name == "Golden Mills"

    def test_name_substring_either_direction(self, catalog):
        assert find_supplier("white sugar", "BAKERY", catalog).name == "Sweet Co"
        assert find_supplier("PREMIUM CAKE FLOUR 10KG BAG", "BAKERY", catalog).name == "Golden Mills"

    def test_falls_back_across_departments(self, catalog):
        """Only the Butchery catalog has code 999."""
        detail = find_supplier("SPICE (999)", "BAKERY", catalog)

        assert detail.name == "Spice World"
        assert detail.country_of_origin == "India"

    def test_department_code_accepted(self, catalog):
        assert find_supplier("CAKE FLOUR (10023)", "1154", catalog).name == "Golden Mills"

    def test_first_row_wins(self):
        rows = [
            SupplierRecord("S1", "First", "FLOUR", department="BAKERY"),
            SupplierRecord("S2", "Second", "FLOUR", department="BAKERY"),
        ]
        assert find_supplier("FLOUR", "BAKERY", rows).name == "First"

    def test_no_match(self, catalog):
        assert find_supplier("SALT", "BAKERY", catalog) is None

    def test_empty_inputs(self, catalog):
        assert find_supplier("", "BAKERY", catalog) is None
        assert find_supplier("   ", "BAKERY", catalog) is None
        assert find_supplier("FLOUR", "BAKERY", []) is None

    def test_blank_descriptions_never_match(self):
        rows = [SupplierRecord("S1", "Blank", "", department="BAKERY")]
        assert find_supplier("FLOUR", "BAKERY", rows) is None

    @pytest.mark.parametrize("text", ["CAKE FLOUR (10023)", "white sugar", "SPICE (999)", "SALT"])
    def test_same_inputs_same_result(self, catalog, text):
        first = find_supplier(text, "BAKERY", catalog)
        second = find_supplier(text, "BAKERY", list(catalog))

        assert first == second
        assert SupplierMatcher(catalog).match(text, "BAKERY") == SupplierMatcher(catalog).match(text, "BAKERY")


class TestSupplierMatcher:
    def test_match_degrades_to_unknown(self, catalog):
        detail = SupplierMatcher(catalog).match("SALT", "BAKERY")

        assert detail.is_unknown
        assert detail.name == "Unknown"

    def test_by_name(self, catalog):
        assert SupplierMatcher(catalog).by_name("golden mills").supplier_code == "S100"
        assert find_supplier_by_name("Nobody", catalog) is None
        assert find_supplier_by_name("", catalog) is None


class TestParseCatalogCsv:
    def test_parses_rows(self):
        stream = io.StringIO(
            "Supplier_Code,Supplier_Name,Product_Description,Ing.Prod_Code,Pack_Size,Address\n"
            "S100,Golden Mills,CAKE FLOUR 10KG,10023,10kg,1 Mill Road\n"
            ",,,,,\n"
            "S300, Sweet Co ,WHITE SUGAR,,,\n"
        )

        rows = parse_catalog_csv(stream, "bakery")

        assert len(rows) == 2
        assert rows[0].ingredient_product_code == "10023"
        assert rows[0].address == "1 Mill Road"
        assert rows[1].supplier_name == "Sweet Co"
        assert {r.department for r in rows} == {"BAKERY"}
