"""
Traceman Result Types.

Structured results for lifecycle operations and maintenance routines.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from traceman.documents import AuditRecord, Schedule, ScheduleItem


@dataclass
class TransitionResult:
    """
    Result of a status transition.

    For a completion, `item` is the item as it was completed (it no longer
    exists in any schedule), `audit` is the stored record and `schedule`
    is None when the emptied schedule was deleted.
    """

    item: ScheduleItem
    schedule: Schedule | None
    audit: AuditRecord | None = None

    @property
    def completed(self) -> bool:
        return self.audit is not None


@dataclass
class BackfillReport:
    """Outcome of a supplier backfill run."""

    audits_scanned: int = 0
    audits_updated: int = 0
    lines_updated: int = 0
    updated_uids: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.audits_updated > 0


@dataclass
class ConversionReport:
    """Outcome of converting leftover completed items into audit records."""

    converted: list[str] = field(default_factory=list)
    skipped_existing: list[str] = field(default_factory=list)
    skipped_missing_recipe: list[str] = field(default_factory=list)
    schedules_deleted: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.converted) + len(self.skipped_existing) + len(self.skipped_missing_recipe)
