"""
SupplierProduct model.

One row of a department supplier catalog, usually imported from the
department CSV export (see the `load_supplier_catalog` command). Row order
is significant: supplier matching returns the first match.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from traceman.documents import SupplierRecord


class SupplierProduct(models.Model):
    department = models.CharField(max_length=20, db_index=True, verbose_name=_("Department"))
    supplier_code = models.CharField(max_length=50, verbose_name=_("Supplier Code"))
    supplier_name = models.CharField(max_length=200, verbose_name=_("Supplier"))
    product_description = models.CharField(max_length=300, blank=True, verbose_name=_("Product Description"))
    ingredient_product_code = models.CharField(
        max_length=50,
        blank=True,
        db_index=True,
        verbose_name=_("Ingredient Product Code"),
    )
    supplier_product_code = models.CharField(max_length=50, blank=True, verbose_name=_("Supplier Product Code"))
    pack_size = models.CharField(max_length=50, blank=True, verbose_name=_("Pack Size"))
    address = models.CharField(max_length=300, blank=True, verbose_name=_("Address"))
    country_of_origin = models.CharField(max_length=100, blank=True, verbose_name=_("Country of Origin"))
    ean = models.CharField(max_length=20, blank=True, verbose_name=_("EAN"))
    contact_person = models.CharField(max_length=120, blank=True, verbose_name=_("Contact Person"))
    email = models.CharField(max_length=200, blank=True, verbose_name=_("Email"))
    phone = models.CharField(max_length=40, blank=True, verbose_name=_("Phone"))

    class Meta:
        db_table = "traceman_supplier_product"
        verbose_name = _("Supplier Product")
        verbose_name_plural = _("Supplier Products")
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.supplier_name}: {self.product_description}"

    @classmethod
    def from_record(cls, row: SupplierRecord) -> "SupplierProduct":
        return cls(**row.as_dict())

    def to_record(self) -> SupplierRecord:
        return SupplierRecord(
            supplier_code=self.supplier_code,
            supplier_name=self.supplier_name,
            product_description=self.product_description,
            ingredient_product_code=self.ingredient_product_code,
            pack_size=self.pack_size,
            address=self.address,
            department=self.department,
            country_of_origin=self.country_of_origin,
            supplier_product_code=self.supplier_product_code,
            ean=self.ean,
            contact_person=self.contact_person,
            email=self.email,
            phone=self.phone,
        )
