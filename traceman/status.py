"""
Schedule status policy.

Pure rules for the schedule item lifecycle:

    SCHEDULED → IN_PROGRESS → COMPLETED
        │            │
        ├────────────┴──→ CANCELLED
        └──────────────→ COMPLETED

COMPLETED and CANCELLED are terminal. Persisted data may still carry the
legacy values 'planned' (read as SCHEDULED) and 'in-progress'.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from traceman.exceptions import TraceValidationError


class ScheduleStatus(models.TextChoices):
    """Schedule item lifecycle status."""

    SCHEDULED = "scheduled", _("Scheduled")
    IN_PROGRESS = "in_progress", _("In Progress")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


LEGACY_STATUS_MAP = {
    "planned": ScheduleStatus.SCHEDULED,
    "in-progress": ScheduleStatus.IN_PROGRESS,
}

VALID_TRANSITIONS = {
    ScheduleStatus.SCHEDULED: frozenset(
        {ScheduleStatus.IN_PROGRESS, ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED}
    ),
    ScheduleStatus.IN_PROGRESS: frozenset(
        {ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED}
    ),
    ScheduleStatus.COMPLETED: frozenset(),
    ScheduleStatus.CANCELLED: frozenset(),
}

STATUS_COLORS = {
    ScheduleStatus.SCHEDULED: "#3498db",
    ScheduleStatus.IN_PROGRESS: "#f39c12",
    ScheduleStatus.COMPLETED: "#2ecc71",
    ScheduleStatus.CANCELLED: "#e74c3c",
}

UNKNOWN_COLOR = "#95a5a6"
UNKNOWN_LABEL = "Unknown"

EDITABLE_STATUSES = frozenset({ScheduleStatus.SCHEDULED, ScheduleStatus.IN_PROGRESS})


def normalize(status):
    """
    Map a raw status to a ScheduleStatus.

    Legacy values are translated; unknown values are returned unchanged so
    that callers can reject them explicitly.
    """
    if isinstance(status, ScheduleStatus):
        return status
    if status in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[status]
    try:
        return ScheduleStatus(status)
    except ValueError:
        return status


def is_known(status) -> bool:
    return isinstance(normalize(status), ScheduleStatus)


def is_valid_transition(current, new) -> bool:
    """Whether `current` may move to `new`. Unknown statuses fail closed."""
    allowed = VALID_TRANSITIONS.get(normalize(current))
    if allowed is None:
        return False
    return normalize(new) in allowed


def color_for(status) -> str:
    return STATUS_COLORS.get(normalize(status), UNKNOWN_COLOR)


def label_for(status) -> str:
    normalized = normalize(status)
    if isinstance(normalized, ScheduleStatus):
        return str(normalized.label)
    return UNKNOWN_LABEL


def can_edit(status) -> bool:
    return normalize(status) in EDITABLE_STATUSES


def can_confirm(status) -> bool:
    """Whether an item with this status can be marked completed."""
    return is_valid_transition(status, ScheduleStatus.COMPLETED)


def transition_error(current, new):
    """Build the validation error for a rejected `current` → `new` move."""
    return TraceValidationError(
        "INVALID_TRANSITION",
        f"Cannot change status from {label_for(current)} to {label_for(new)}",
        current=str(getattr(normalize(current), "value", current)),
        requested=str(getattr(normalize(new), "value", new)),
    )
