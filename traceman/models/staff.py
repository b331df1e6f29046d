"""
Staff model.

Food handlers and department managers. Schedule items reference staff by
free-text name, never by key.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from traceman.documents import Staff as StaffDocument
from traceman.documents import StaffRole


class Staff(models.Model):
    name = models.CharField(max_length=120, verbose_name=_("Name"))
    department = models.CharField(max_length=20, db_index=True, verbose_name=_("Department"))
    role = models.CharField(
        max_length=20,
        choices=StaffRole.choices,
        default=StaffRole.HANDLER,
        verbose_name=_("Role"),
    )
    email = models.EmailField(blank=True, verbose_name=_("Email"))
    phone = models.CharField(max_length=40, blank=True, verbose_name=_("Phone"))
    is_active = models.BooleanField(default=True, verbose_name=_("Active"))

    class Meta:
        db_table = "traceman_staff"
        verbose_name = _("Staff Member")
        verbose_name_plural = _("Staff")
        ordering = ["department", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.role}, {self.department})"

    def to_document(self) -> StaffDocument:
        return StaffDocument(
            id=str(self.pk),
            name=self.name,
            department=self.department,
            role=self.role,
            email=self.email,
            phone=self.phone,
        )
