"""
ProductionAudit model.

ProductionAudit = the traceability record of one completed production run.

Rows are written once when an item completes. The only later writes come
from supplier backfill maintenance; django-simple-history keeps every
revision so backfills remain auditable.
"""

from decimal import Decimal

from django.db import models
from django.utils.dateparse import parse_date
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from traceman.documents import AuditRecord, IngredientAuditLine


class ProductionAudit(models.Model):
    uid = models.CharField(
        unique=True,
        max_length=120,
        verbose_name=_("UID"),
        help_text=_("{date}-{recipeCode}-{timestamp}"),
    )
    department = models.CharField(max_length=20, db_index=True, verbose_name=_("Department"))
    date = models.DateField(db_index=True, verbose_name=_("Production Date"))
    recipe_code = models.CharField(max_length=50, db_index=True, verbose_name=_("Recipe Code"))
    product_name = models.CharField(max_length=200, blank=True, verbose_name=_("Product"))

    # Origin
    schedule_id = models.CharField(max_length=120, blank=True, db_index=True, verbose_name=_("Schedule Item"))
    original_schedule_id = models.CharField(max_length=50, blank=True, verbose_name=_("Schedule"))

    # People
    department_manager = models.CharField(max_length=120, blank=True, verbose_name=_("Manager"))
    food_handler_responsible = models.CharField(max_length=120, blank=True, verbose_name=_("Food Handler"))

    # Traceability
    packing_batch_code = models.JSONField(default=list, blank=True, verbose_name=_("Packing Batch Codes"))
    lines = models.JSONField(
        default=list,
        blank=True,
        verbose_name=_("Ingredient Lines"),
        help_text=_("One entry per recipe ingredient, in recipe order"),
    )

    # Production
    planned_qty = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"), verbose_name=_("Planned"))
    actual_qty = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"), verbose_name=_("Actual"))
    quality_score = models.PositiveSmallIntegerField(default=0, verbose_name=_("Quality Score"))
    notes = models.TextField(blank=True, verbose_name=_("Notes"))
    deviations = models.JSONField(default=list, blank=True, verbose_name=_("Deviations"))
    confirmation_timestamp = models.CharField(max_length=40, blank=True, verbose_name=_("Confirmed At"))

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "traceman_production_audit"
        verbose_name = _("Production Audit")
        verbose_name_plural = _("Production Audits")
        ordering = ["-date", "-id"]

    def __str__(self) -> str:
        return f"{self.uid} ({self.product_name or self.recipe_code})"

    @property
    def ingredient_count(self) -> int:
        return len(self.lines or [])

    def to_document(self) -> AuditRecord:
        return AuditRecord(
            id=str(self.pk),
            uid=self.uid,
            department=self.department,
            date=self.date.isoformat(),
            recipe_code=self.recipe_code,
            product_name=self.product_name,
            schedule_id=self.schedule_id,
            original_schedule_id=self.original_schedule_id,
            department_manager=self.department_manager,
            food_handler_responsible=self.food_handler_responsible,
            packing_batch_code=tuple(self.packing_batch_code or ()),
            lines=tuple(IngredientAuditLine.from_dict(line) for line in self.lines or []),
            planned_qty=self.planned_qty,
            actual_qty=self.actual_qty,
            quality_score=self.quality_score,
            notes=self.notes,
            deviations=tuple(self.deviations or ("none",)),
            confirmation_timestamp=self.confirmation_timestamp,
        )

    def apply_document(self, record: AuditRecord) -> None:
        """Copy an audit document onto this row (does not save)."""
        self.uid = record.uid
        self.department = record.department
        self.date = parse_date(record.date)
        self.recipe_code = record.recipe_code
        self.product_name = record.product_name
        self.schedule_id = record.schedule_id
        self.original_schedule_id = record.original_schedule_id
        self.department_manager = record.department_manager
        self.food_handler_responsible = record.food_handler_responsible
        self.packing_batch_code = list(record.packing_batch_code)
        self.lines = [line.as_dict() for line in record.lines]
        self.planned_qty = record.planned_qty
        self.actual_qty = record.actual_qty
        self.quality_score = record.quality_score
        self.notes = record.notes
        self.deviations = list(record.deviations)
        self.confirmation_timestamp = record.confirmation_timestamp
