from __future__ import annotations

import calendar as _calendar
import logging
from dataclasses import dataclass
from datetime import date, time

from homebase.schemas import CalendarDay, CalendarEvent, EventPatch, MonthView
from homebase.storage import KeyValueStorage, PersistedList
from homebase.stores.base import InputValidationError, clean_text, new_id, utc_now

logger = logging.getLogger(__name__)

CALENDAR_EVENTS_KEY = "calendarEvents"
EVENTS_PER_DAY_CELL = 2


def _normalize_time_value(value):
    if value is None:
        return None
    if hasattr(value, "strftime"):
        return value.strftime("%H:%M")
    value_str = str(value).strip()
    if not value_str:
        return None
    try:
        return time.fromisoformat(value_str).strftime("%H:%M")
    except ValueError as exc:
        raise InputValidationError(f"Invalid event time: {value_str}") from exc


@dataclass(frozen=True)
class MonthCursor:
    """Year/month pointer for the calendar grid."""

    year: int
    month: int

    @classmethod
    def for_date(cls, day: date) -> "MonthCursor":
        return cls(day.year, day.month)

    def shift(self, step: int) -> "MonthCursor":
        index = self.year * 12 + (self.month - 1) + step
        return MonthCursor(index // 12, index % 12 + 1)

    def previous(self) -> "MonthCursor":
        return self.shift(-1)

    def next(self) -> "MonthCursor":
        return self.shift(1)


class CalendarStore:
    def __init__(self, storage: KeyValueStorage):
        self._list = PersistedList(storage, CALENDAR_EVENTS_KEY, CalendarEvent)

    def all(self) -> list[CalendarEvent]:
        return self._list.load()

    def events_on(self, day: date) -> list[CalendarEvent]:
        return [event for event in self._list.load() if event.date == day]

    def add(self, day: date, title: str, time_value=None, description: str = "") -> CalendarEvent:
        title = clean_text(title)
        if not title:
            raise InputValidationError("Event title is required")
        event = CalendarEvent(
            id=new_id(),
            title=title,
            description=clean_text(description),
            date=day,
            time=_normalize_time_value(time_value),
            created_at=utc_now(),
        )
        self._list.save([*self._list.load(), event])
        logger.debug("Added event %s on %s", event.id, day.isoformat())
        return event

    def update(self, event_id: str, patch: EventPatch) -> CalendarEvent | None:
        changes = patch.model_dump(exclude_unset=True)
        for key in ("title", "date"):
            if key in changes and changes[key] is None:
                del changes[key]
        if "title" in changes:
            changes["title"] = clean_text(changes["title"])
            if not changes["title"]:
                raise InputValidationError("Event title is required")
        if "description" in changes:
            changes["description"] = clean_text(changes["description"])
        if "time" in changes:
            changes["time"] = _normalize_time_value(changes["time"])
        events = self._list.load()
        for idx, event in enumerate(events):
            if event.id == event_id:
                events[idx] = event.model_copy(update=changes)
                self._list.save(events)
                return events[idx]
        return None

    def remove(self, event_id: str) -> CalendarEvent | None:
        events = self._list.load()
        removed = next((event for event in events if event.id == event_id), None)
        if removed is None:
            return None
        self._list.save([event for event in events if event.id != event_id])
        return removed

    def upcoming(self, from_date: date, limit: int = 5) -> list[CalendarEvent]:
        # sorted() is stable, so events sharing a date keep insertion order.
        pending = [event for event in self._list.load() if event.date >= from_date]
        return sorted(pending, key=lambda event: event.date)[: max(0, limit)]

    def month_view(self, cursor: MonthCursor, today: date) -> MonthView:
        events = self._list.load()
        by_day: dict[date, list[CalendarEvent]] = {}
        for event in events:
            by_day.setdefault(event.date, []).append(event)

        first_weekday, days_in_month = _calendar.monthrange(cursor.year, cursor.month)
        days = []
        for day_number in range(1, days_in_month + 1):
            day = date(cursor.year, cursor.month, day_number)
            day_events = by_day.get(day, [])
            days.append(
                CalendarDay(
                    date=day,
                    events=day_events[:EVENTS_PER_DAY_CELL],
                    more_count=max(0, len(day_events) - EVENTS_PER_DAY_CELL),
                    is_today=day == today,
                )
            )
        return MonthView(
            year=cursor.year,
            month=cursor.month,
            title=f"{_calendar.month_name[cursor.month]} {cursor.year}",
            # Grid weeks start on Sunday; monthrange counts from Monday.
            leading_blanks=(first_weekday + 1) % 7,
            days=days,
        )
