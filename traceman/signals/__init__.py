"""
Traceman Signals.

All notifications to dashboards, staff views and other observers go through
a ProductionEvents channel. Components receive the channel they publish to;
`production_events` is the default one.

Events (each sent with `entity` and an ISO `timestamp`):
    schedule-updated      A schedule was saved or deleted (entity: Schedule)
    new-audit             An audit record was created (entity: AuditRecord)
    data-updated          Reference or bulk data changed (entity: department)
    PRODUCTION_COMPLETED  An item completed (entity: AuditRecord, item=ScheduleItem)

Delivery is at-least-once: receivers must tolerate duplicates.
"""

import logging

from django.dispatch import Signal
from django.utils import timezone

logger = logging.getLogger(__name__)

SCHEDULE_UPDATED = "schedule-updated"
NEW_AUDIT = "new-audit"
DATA_UPDATED = "data-updated"
PRODUCTION_COMPLETED = "PRODUCTION_COMPLETED"

EVENT_NAMES = (SCHEDULE_UPDATED, NEW_AUDIT, DATA_UPDATED, PRODUCTION_COMPLETED)


class ProductionEvents:
    """
    Event channel with one Django Signal per event name.

    Usage:
        events = ProductionEvents()
        events.connect("new-audit", on_new_audit)
        events.publish("new-audit", record)
    """

    def __init__(self):
        self.schedule_updated = Signal()
        self.new_audit = Signal()
        self.data_updated = Signal()
        self.production_completed = Signal()
        self._signals = {
            SCHEDULE_UPDATED: self.schedule_updated,
            NEW_AUDIT: self.new_audit,
            DATA_UPDATED: self.data_updated,
            PRODUCTION_COMPLETED: self.production_completed,
        }

    def signal(self, name: str) -> Signal:
        try:
            return self._signals[name]
        except KeyError:
            raise ValueError(f"Unknown production event: {name!r}") from None

    def connect(self, name: str, receiver, **kwargs) -> None:
        self.signal(name).connect(receiver, **kwargs)

    def disconnect(self, name: str, receiver) -> bool:
        return self.signal(name).disconnect(receiver)

    def publish(self, name: str, entity, sender=None, **extra) -> str:
        """
        Notify receivers of `name`. Receiver errors are logged, never raised.

        Returns:
            The timestamp sent with the event
        """
        timestamp = timezone.now().isoformat()
        responses = self.signal(name).send_robust(
            sender=sender or self.__class__,
            event=name,
            entity=entity,
            timestamp=timestamp,
            **extra,
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    f"Receiver {receiver!r} failed on {name}: {response}",
                    extra={"event": name},
                )
        return timestamp


# Default channel
production_events = ProductionEvents()

__all__ = [
    "ProductionEvents",
    "production_events",
    "EVENT_NAMES",
    "SCHEDULE_UPDATED",
    "NEW_AUDIT",
    "DATA_UPDATED",
    "PRODUCTION_COMPLETED",
]
