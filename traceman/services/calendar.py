"""
Production calendar projection.

Derives calendar events from schedules. Items with both a start and an end
time become timed events on their date; the rest become all-day events.
Colours follow the item status.

The projection is pure: identical schedules give identical events, ordered
by schedule and then by item position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from traceman.documents import Recipe, Schedule, ScheduleItem, number_to_json
from traceman.status import color_for, label_for, normalize

EVENT_TEXT_COLOR = "#ffffff"


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    start: str
    end: str | None
    all_day: bool
    color: str
    schedule_id: str | None
    item_index: int
    item_id: str
    status: str
    status_label: str
    recipe_code: str
    planned_qty: object
    handler_name: str = ""

    def as_dict(self) -> dict:
        """FullCalendar event object."""
        data = {
            "id": self.id,
            "title": self.title,
            "start": self.start,
            "allDay": self.all_day,
            "backgroundColor": self.color,
            "borderColor": self.color,
            "textColor": EVENT_TEXT_COLOR,
            "extendedProps": {
                "scheduleId": self.schedule_id,
                "itemIndex": self.item_index,
                "itemId": self.item_id,
                "status": self.status,
                "statusLabel": self.status_label,
                "recipeCode": self.recipe_code,
                "plannedQty": number_to_json(self.planned_qty),
                "handlerName": self.handler_name,
            },
        }
        if self.end is not None:
            data["end"] = self.end
        return data


def _title(item: ScheduleItem, recipes: dict[str, Recipe]) -> str:
    recipe = recipes.get(item.recipe_code)
    name = (recipe.description if recipe else "") or item.product_description or item.recipe_code
    return f"{name} ({number_to_json(item.planned_qty)})"


def event_for(schedule: Schedule, index: int, item: ScheduleItem, recipes: dict[str, Recipe]) -> CalendarEvent:
    status = normalize(item.status)
    timed = bool(item.start_time and item.end_time)
    return CalendarEvent(
        id=item.id or f"{schedule.id}-{index}",
        title=_title(item, recipes),
        start=f"{item.date}T{item.start_time}:00" if timed else item.date,
        end=f"{item.date}T{item.end_time}:00" if timed else None,
        all_day=not timed,
        color=color_for(status),
        schedule_id=schedule.id,
        item_index=index,
        item_id=item.id,
        status=getattr(status, "value", str(status)),
        status_label=label_for(status),
        recipe_code=item.recipe_code,
        planned_qty=item.planned_qty,
        handler_name=item.handler_name,
    )


def project(schedules: Iterable[Schedule], recipes: Iterable[Recipe] | None = None) -> list[CalendarEvent]:
    """
    Calendar events for every dated item of `schedules`.

    Args:
        schedules: Schedules in display order
        recipes: Optional recipes used for event titles
    """
    by_code = {r.product_code: r for r in recipes or ()}
    events = []
    for schedule in schedules:
        for index, item in enumerate(schedule.items):
            if not item.date:
                continue
            events.append(event_for(schedule, index, item, by_code))
    return events
