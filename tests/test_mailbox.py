# tests/test_mailbox.py
#
# Tests for converting Google payloads and for the gateway running against the
# in-memory mock services.

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import patch

from app.agents.directives import EventCreationDirective
from app.core.config import settings
from app.services.mailbox import (
    MailboxGateway,
    directive_to_google_event,
    event_from_google,
    message_from_gmail,
)


class TestMessageFromGmail:

    def test_labels_map_to_flags(self):
        message = message_from_gmail({
            "id": "m1",
            "from": "John Doe <john@example.com>",
            "subject": "Hello",
            "snippet": "Quick question",
            "internal_date": 1773165600000,
            "labels": ["INBOX", "UNREAD", "IMPORTANT"],
        })

        assert message.sender == "John Doe"
        assert message.is_read is False
        assert message.is_important is True
        assert message.received_at == datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)

    def test_bare_address_and_missing_subject(self):
        message = message_from_gmail({"from": "alerts@example.com", "labels": ["INBOX"]})
        assert message.sender == "alerts@example.com"
        assert message.subject == "(No subject)"
        assert message.is_read is True
        assert message.is_important is False


class TestEventFromGoogle:

    def test_timed_event(self):
        event = event_from_google({
            "id": "e1",
            "summary": "Standup",
            "start": {"dateTime": "2026-03-10T09:00:00-04:00"},
            "end": {"dateTime": "2026-03-10T09:15:00-04:00"},
            "organizer": {"email": "lead@example.com"},
            "location": "Room 4",
        })

        assert event.subject == "Standup"
        assert event.start == datetime(2026, 3, 10, 13, 0, tzinfo=timezone.utc)
        assert event.organizer == "lead@example.com"
        assert event.location == "Room 4"
        assert event.is_all_day is False

    def test_all_day_event(self):
        event = event_from_google({
            "summary": "Holiday",
            "start": {"date": "2026-03-10"},
            "end": {"date": "2026-03-11"},
        })
        assert event.is_all_day is True
        assert event.all_day_date == date(2026, 3, 10)
        assert event.start is None


class TestDirectiveToGoogleEvent:

    def test_local_times_carry_the_timezone(self):
        directive = EventCreationDirective(
            subject="Lunch",
            startDateTime="2026-03-11T12:00:00",
            endDateTime="2026-03-11T13:00:00",
            body="Bring notes",
        )
        event = directive_to_google_event(directive, "America/New_York")

        assert event["summary"] == "Lunch"
        assert event["start"] == {"dateTime": "2026-03-11T12:00:00", "timeZone": "America/New_York"}
        assert event["description"] == "Bring notes"
        assert "location" not in event


class TestMailboxGatewayWithMocks:

    def test_unread_list_and_event_creation(self):
        with patch.object(settings, "MOCK_GOOGLE", True):
            gateway = MailboxGateway("America/New_York")
            unread = asyncio.run(gateway.unread_messages())
            directive = EventCreationDirective(
                subject="Review",
                startDateTime="2026-03-11T10:00:00",
                endDateTime="2026-03-11T11:00:00",
            )
            created = asyncio.run(gateway.create_event(directive))

        assert unread
        assert all(not m.is_read for m in unread)
        assert any(m.is_important for m in unread)
        assert created["summary"] == "Review"
        assert created["id"]
