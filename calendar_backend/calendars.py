"""
Calendar and event operations over a user's aggregate.

Every mutation follows the same pattern: load the whole user, locate the
nested calendar (by name) and event (by id) with a linear scan, mutate in
memory, then save the whole user back. Nothing guards the window between the
load and the save, so concurrent writers to the same user race and the last
save wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from calendar_backend.db import CalendarRecord, DbClient, EventRecord, UserRecord
from calendar_backend.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def normalize_event_date(value) -> str:
    """
    Parse an ISO-8601 date or datetime and return a UTC ISO datetime string.

    Values without an offset are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str) or not value.strip():
        raise ValidationError("Event date is required")
    else:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError("Invalid event date", details=str(exc)) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def _find_calendar_index(user: UserRecord, name: str) -> int:
    for index, calendar in enumerate(user.calendars):
        if calendar.name == name:
            return index
    return -1


def _find_event_index(calendar: CalendarRecord, event_id: str) -> int:
    for index, event in enumerate(calendar.events):
        if event.event_id == event_id:
            return index
    return -1


class CalendarService:
    """Locates and mutates the calendars and events nested in a user."""

    def __init__(self, db: DbClient):
        self.db = db

    def _load_user(self, user_id: str) -> UserRecord:
        user = self.db.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _get_calendar(self, user: UserRecord, name: str) -> CalendarRecord:
        index = _find_calendar_index(user, name)
        if index == -1:
            raise NotFoundError("Calendar not found")
        return user.calendars[index]

    def list_calendars(self, user_id: str) -> list[CalendarRecord]:
        return self._load_user(user_id).calendars

    def create_calendar(self, user_id: str, name: str) -> list[CalendarRecord]:
        if not name:
            raise ValidationError("Calendar name is required")
        user = self._load_user(user_id)
        if _find_calendar_index(user, name) != -1:
            raise ConflictError(f"Calendar {name!r} already exists")
        user.calendars.append(CalendarRecord(name=name))
        self.db.save_user(user)
        logger.info("User %s created calendar %r", user_id, name)
        return user.calendars

    def delete_calendar(self, user_id: str, name: str) -> None:
        if not name:
            raise ValidationError("Calendar name is required")
        user = self._load_user(user_id)
        index = _find_calendar_index(user, name)
        if index == -1:
            raise NotFoundError("Calendar not found")
        del user.calendars[index]
        self.db.save_user(user)
        logger.info("User %s deleted calendar %r", user_id, name)

    def edit_calendar(self, user_id: str, name: str, new_name: str) -> CalendarRecord:
        if not name or not new_name:
            raise ValidationError("Missing required field.")
        user = self._load_user(user_id)
        calendar = self._get_calendar(user, name)
        if new_name != name and _find_calendar_index(user, new_name) != -1:
            raise ConflictError(f"Calendar {new_name!r} already exists")
        calendar.name = new_name
        self.db.save_user(user)
        return calendar

    def create_event(
        self, user_id: str, calendar_name: str, event_data: dict
    ) -> EventRecord:
        if not calendar_name or not event_data:
            raise ValidationError("Missing required field.")
        title = event_data.get("title")
        if not title:
            raise ValidationError("Event title is required")
        description = event_data.get("description")
        if not isinstance(title, str):
            raise ValidationError("Event title must be a string")
        if description is not None and not isinstance(description, str):
            raise ValidationError("Event description must be a string")
        date = normalize_event_date(event_data.get("date"))

        user = self._load_user(user_id)
        calendar = self._get_calendar(user, calendar_name)
        event = EventRecord(
            title=title,
            date=date,
            description=description,
        )
        calendar.events.append(event)
        self.db.save_user(user)
        return event

    def delete_event(self, user_id: str, calendar_name: str, event_id: str) -> None:
        if not calendar_name or not event_id:
            raise ValidationError("Missing required field.")
        user = self._load_user(user_id)
        calendar = self._get_calendar(user, calendar_name)
        # Only the named calendar is searched; ids from other calendars miss.
        index = _find_event_index(calendar, event_id)
        if index == -1:
            raise NotFoundError("Event not found")
        del calendar.events[index]
        self.db.save_user(user)

    def edit_event(
        self,
        user_id: str,
        calendar_name: str,
        event_id: str,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> EventRecord:
        if not calendar_name or not event_id:
            raise ValidationError("Missing required field.")
        if not title and not description:
            raise ValidationError("At least one field is required to make an edit.")
        user = self._load_user(user_id)
        calendar = self._get_calendar(user, calendar_name)
        index = _find_event_index(calendar, event_id)
        if index == -1:
            raise NotFoundError("Event not found")
        event = calendar.events[index]
        if title:
            event.title = title
        if description:
            event.description = description
        self.db.save_user(user)
        return event
