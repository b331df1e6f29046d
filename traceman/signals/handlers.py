"""
Traceman Signal Handlers.

Logs every event on the default production channel.

This module is imported in apps.py to register handlers.
"""

import logging

from django.dispatch import receiver

from traceman.signals import production_events

logger = logging.getLogger(__name__)


@receiver(production_events.schedule_updated, dispatch_uid="traceman.log_schedule_updated")
def log_schedule_updated(sender, entity, timestamp, deleted=False, **kwargs):
    action = "deleted" if deleted else "saved"
    logger.info(
        f"Schedule {entity.id} ({entity.department} {entity.date}) {action}",
        extra={
            "schedule": entity.id,
            "department": entity.department,
            "items": len(entity.items),
            "timestamp": timestamp,
        },
    )


@receiver(production_events.new_audit, dispatch_uid="traceman.log_new_audit")
def log_new_audit(sender, entity, timestamp, **kwargs):
    logger.info(
        f"Audit {entity.uid} recorded for {entity.recipe_code}",
        extra={
            "uid": entity.uid,
            "department": entity.department,
            "ingredients": len(entity.lines),
            "timestamp": timestamp,
        },
    )


@receiver(production_events.production_completed, dispatch_uid="traceman.log_production_completed")
def log_production_completed(sender, entity, timestamp, item=None, **kwargs):
    logger.info(
        f"Production of {entity.recipe_code} completed: {entity.actual_qty} of {entity.planned_qty}",
        extra={
            "uid": entity.uid,
            "item": getattr(item, "id", None),
            "actual_qty": float(entity.actual_qty),
            "timestamp": timestamp,
        },
    )


@receiver(production_events.data_updated, dispatch_uid="traceman.log_data_updated")
def log_data_updated(sender, entity, timestamp, reason="", **kwargs):
    logger.info(
        f"Data updated for {entity}: {reason or 'refresh'}",
        extra={"department": entity, "reason": reason, "timestamp": timestamp},
    )
