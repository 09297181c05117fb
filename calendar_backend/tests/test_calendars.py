import unittest

from calendar_backend.calendars import CalendarService, normalize_event_date
from calendar_backend.db import InMemoryDbClient
from calendar_backend.errors import ConflictError, NotFoundError, ValidationError


class CalendarServiceTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.user = self.db.create_user("alice", "alice@example.com", "hash")
        self.service = CalendarService(self.db)

    def _names(self):
        return [c.name for c in self.service.list_calendars(self.user.user_id)]

    def test_create_calendar_starts_empty(self):
        calendars = self.service.create_calendar(self.user.user_id, "Work")
        self.assertEqual(len(calendars), 1)
        listed = self.service.list_calendars(self.user.user_id)
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0].name, "Work")
        self.assertEqual(listed[0].events, [])

    def test_create_calendar_requires_name(self):
        with self.assertRaises(ValidationError):
            self.service.create_calendar(self.user.user_id, "")

    def test_create_calendar_unknown_user(self):
        with self.assertRaises(NotFoundError):
            self.service.create_calendar("missing", "Work")

    def test_duplicate_calendar_name_rejected(self):
        self.service.create_calendar(self.user.user_id, "Work")
        with self.assertRaises(ConflictError):
            self.service.create_calendar(self.user.user_id, "Work")
        self.assertEqual(self._names(), ["Work"])

    def test_delete_missing_calendar_leaves_others(self):
        self.service.create_calendar(self.user.user_id, "Work")
        self.service.create_calendar(self.user.user_id, "Home")
        with self.assertRaises(NotFoundError):
            self.service.delete_calendar(self.user.user_id, "Gym")
        self.assertEqual(self._names(), ["Work", "Home"])

    def test_delete_calendar_requires_name(self):
        with self.assertRaises(ValidationError):
            self.service.delete_calendar(self.user.user_id, "")

    def test_delete_calendar(self):
        self.service.create_calendar(self.user.user_id, "Work")
        self.service.create_calendar(self.user.user_id, "Home")
        self.service.delete_calendar(self.user.user_id, "Work")
        self.assertEqual(self._names(), ["Home"])

    def test_rename_calendar(self):
        self.service.create_calendar(self.user.user_id, "Work")
        calendar_id = self.service.list_calendars(self.user.user_id)[0].calendar_id
        self.service.edit_calendar(self.user.user_id, "Work", "Office")
        calendars = self.service.list_calendars(self.user.user_id)
        self.assertEqual([c.name for c in calendars], ["Office"])
        self.assertEqual(calendars[0].calendar_id, calendar_id)

    def test_rename_to_existing_name_rejected(self):
        self.service.create_calendar(self.user.user_id, "Work")
        self.service.create_calendar(self.user.user_id, "Home")
        with self.assertRaises(ConflictError):
            self.service.edit_calendar(self.user.user_id, "Work", "Home")

    def test_rename_requires_both_names(self):
        self.service.create_calendar(self.user.user_id, "Work")
        with self.assertRaises(ValidationError):
            self.service.edit_calendar(self.user.user_id, "Work", "")
        with self.assertRaises(ValidationError):
            self.service.edit_calendar(self.user.user_id, "", "Office")
        self.assertEqual(self._names(), ["Work"])

    def test_rename_missing_calendar(self):
        with self.assertRaises(NotFoundError):
            self.service.edit_calendar(self.user.user_id, "Work", "Office")

    def test_create_event_assigns_distinct_ids(self):
        self.service.create_calendar(self.user.user_id, "Work")
        first = self.service.create_event(
            self.user.user_id, "Work", {"title": "Standup", "date": "2024-01-01"}
        )
        second = self.service.create_event(
            self.user.user_id, "Work", {"title": "Retro", "date": "2024-01-02"}
        )
        self.assertNotEqual(first.event_id, second.event_id)
        events = self.service.list_calendars(self.user.user_id)[0].events
        self.assertEqual([e.title for e in events], ["Standup", "Retro"])
        self.assertEqual(events[0].date, "2024-01-01T00:00:00+00:00")

    def test_create_event_requires_title_and_date(self):
        self.service.create_calendar(self.user.user_id, "Work")
        with self.assertRaises(ValidationError):
            self.service.create_event(self.user.user_id, "Work", {"date": "2024-01-01"})
        with self.assertRaises(ValidationError):
            self.service.create_event(self.user.user_id, "Work", {"title": "Standup"})
        with self.assertRaises(ValidationError):
            self.service.create_event(
                self.user.user_id, "Work", {"title": "Standup", "date": "someday"}
            )
        self.assertEqual(self.service.list_calendars(self.user.user_id)[0].events, [])

    def test_create_event_rejects_non_string_fields(self):
        self.service.create_calendar(self.user.user_id, "Work")
        with self.assertRaises(ValidationError):
            self.service.create_event(
                self.user.user_id, "Work", {"title": 123, "date": "2024-01-01"}
            )
        with self.assertRaises(ValidationError):
            self.service.create_event(
                self.user.user_id,
                "Work",
                {"title": "Standup", "date": "2024-01-01", "description": 5},
            )
        self.assertEqual(self.service.list_calendars(self.user.user_id)[0].events, [])

    def test_create_event_missing_calendar(self):
        with self.assertRaises(NotFoundError):
            self.service.create_event(
                self.user.user_id, "Work", {"title": "Standup", "date": "2024-01-01"}
            )

    def test_delete_event_from_other_calendar_rejected(self):
        self.service.create_calendar(self.user.user_id, "Work")
        self.service.create_calendar(self.user.user_id, "Home")
        event = self.service.create_event(
            self.user.user_id, "Work", {"title": "Standup", "date": "2024-01-01"}
        )
        with self.assertRaises(NotFoundError):
            self.service.delete_event(self.user.user_id, "Home", event.event_id)
        self.assertEqual(len(self.service.list_calendars(self.user.user_id)[0].events), 1)

        self.service.delete_event(self.user.user_id, "Work", event.event_id)
        self.assertEqual(self.service.list_calendars(self.user.user_id)[0].events, [])

    def test_edit_event_partial_updates(self):
        self.service.create_calendar(self.user.user_id, "Work")
        event = self.service.create_event(
            self.user.user_id,
            "Work",
            {"title": "Standup", "date": "2024-01-01", "description": "daily"},
        )
        self.service.edit_event(
            self.user.user_id, "Work", event.event_id, description="weekly"
        )
        stored = self.service.list_calendars(self.user.user_id)[0].events[0]
        self.assertEqual(stored.title, "Standup")
        self.assertEqual(stored.description, "weekly")

        self.service.edit_event(self.user.user_id, "Work", event.event_id, title="Sync")
        stored = self.service.list_calendars(self.user.user_id)[0].events[0]
        self.assertEqual(stored.title, "Sync")
        self.assertEqual(stored.description, "weekly")
        self.assertEqual(stored.event_id, event.event_id)

    def test_edit_event_requires_a_field(self):
        with self.assertRaises(ValidationError):
            self.service.edit_event(self.user.user_id, "Work", "abc")

    def test_edit_event_missing_event(self):
        self.service.create_calendar(self.user.user_id, "Work")
        with self.assertRaises(NotFoundError):
            self.service.edit_event(self.user.user_id, "Work", "abc", title="x")

    def test_normalize_event_date(self):
        self.assertEqual(
            normalize_event_date("2024-01-01"), "2024-01-01T00:00:00+00:00"
        )
        self.assertEqual(
            normalize_event_date("2024-01-01T09:30:00Z"), "2024-01-01T09:30:00+00:00"
        )
        self.assertEqual(
            normalize_event_date("2024-01-01T10:00:00+02:00"),
            "2024-01-01T08:00:00+00:00",
        )
        with self.assertRaises(ValidationError):
            normalize_event_date(None)


if __name__ == "__main__":
    unittest.main()
