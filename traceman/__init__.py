"""
Django Traceman - Production scheduling and traceability.

Schedules recipe production runs per department, tracks every change to
them, and turns each completed run into an immutable audit record with
scaled ingredient quantities, suppliers, batch codes and dates.

Usage:
    from traceman import ScheduleItemLifecycle, TraceError
    from traceman.conf import get_store_backend

    lifecycle = ScheduleItemLifecycle(get_store_backend(), "BAKERY")
    lifecycle.load()
    item = lifecycle.create({"recipeCode": "R1", "date": "2025-03-01", "plannedQty": 20}, actor="Monica")

    try:
        result = lifecycle.transition(item.id, "completed", actor="Monica", actual_qty=18)
    except TraceError as e:
        print(e.as_dict())
    else:
        for line in result.audit.lines:
            print(f"{line.label}: {line.supplier.name} {line.batch_code}")
"""

from traceman.exceptions import PersistenceError, ReferentialError, TraceError, TraceValidationError


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name == "ScheduleItemLifecycle":
        from traceman.services.lifecycle import ScheduleItemLifecycle

        return ScheduleItemLifecycle
    if name == "AuditRecordBuilder":
        from traceman.services.audit import AuditRecordBuilder

        return AuditRecordBuilder
    if name == "ScheduleStatus":
        from traceman.status import ScheduleStatus

        return ScheduleStatus
    if name == "TransitionResult":
        from traceman.results import TransitionResult

        return TransitionResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ScheduleItemLifecycle",
    "AuditRecordBuilder",
    "ScheduleStatus",
    "TransitionResult",
    "TraceError",
    "TraceValidationError",
    "ReferentialError",
    "PersistenceError",
]
__version__ = "0.1.0"
