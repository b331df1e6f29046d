"""
Schedule model.

Schedule = the production items of one department on one date.

Items are stored as a JSON document list (the schedule item wire format)
so that change history travels with the item exactly as written.
Every save is versioned by django-simple-history.
"""

from django.db import models
from django.utils.dateparse import parse_date
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from traceman.documents import Schedule as ScheduleDocument
from traceman.documents import ScheduleItem


class Schedule(models.Model):
    department = models.CharField(max_length=20, db_index=True, verbose_name=_("Department"))
    date = models.DateField(db_index=True, verbose_name=_("Date"))
    manager_name = models.CharField(max_length=120, blank=True, verbose_name=_("Manager"))
    handlers_names = models.CharField(max_length=500, blank=True, verbose_name=_("Handlers"))
    items = models.JSONField(
        default=list,
        blank=True,
        verbose_name=_("Items"),
        help_text=_("Schedule items with their change history"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "traceman_schedule"
        verbose_name = _("Schedule")
        verbose_name_plural = _("Schedules")
        ordering = ["date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["department", "date"],
                name="traceman_schedule_department_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.department} {self.date} ({len(self.items or [])} items)"

    @property
    def item_count(self) -> int:
        return len(self.items or [])

    def to_document(self) -> ScheduleDocument:
        return ScheduleDocument(
            id=str(self.pk),
            date=self.date.isoformat(),
            department=self.department,
            manager_name=self.manager_name,
            handlers_names=self.handlers_names,
            items=[ScheduleItem.from_dict(i) for i in self.items or []],
        )

    def apply_document(self, document: ScheduleDocument) -> None:
        """Copy a schedule document onto this row (does not save)."""
        self.department = document.department
        self.date = parse_date(document.date)
        self.manager_name = document.manager_name
        self.handlers_names = document.handlers_names
        self.items = [item.as_dict() for item in document.items]
