# tests/test_scheduler.py
#
# Tests for the timer jobs. The gateway, notifier and clock are faked; the
# APScheduler instance is only started inside a running event loop.

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from app.services.mailbox import CalendarEvent, Message
from app.services.schedule import ScheduleConfig
from app.services.scheduler import (
    AssistantScheduler,
    due_reminders,
    reminder_text,
    sweep_urgent_emails,
)


def _event(start, subject="Standup", location=None):
    return CalendarEvent(subject=subject, start=start, end=start + timedelta(minutes=30), location=location)


def _mail(received_at, subject="Outage", important=True):
    return Message(
        sender="Bob",
        received_at=received_at,
        subject=subject,
        preview="",
        is_read=False,
        is_important=important,
    )


def _notifier():
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=True)
    return notifier


def _scheduler(gateway, notifier, clock, config=None):
    return AssistantScheduler(
        assistant=MagicMock(),
        notifier=notifier,
        gateway=gateway,
        schedule_loader=lambda: config or ScheduleConfig(),
        clock=clock,
    )


class TestDueReminders:

    def test_event_inside_window_is_due(self, fixed_now):
        event = _event(fixed_now + timedelta(minutes=14.4))
        due = due_reminders([event], fixed_now, minutes_before=15)
        assert [e for e, _ in due] == [event]

    def test_events_outside_window_are_not_due(self, fixed_now):
        early = _event(fixed_now + timedelta(minutes=16))
        late = _event(fixed_now + timedelta(minutes=13))
        assert due_reminders([early, late], fixed_now, minutes_before=15) == []

    def test_window_edges(self, fixed_now):
        at_limit = _event(fixed_now + timedelta(minutes=15))
        at_lower = _event(fixed_now + timedelta(minutes=14))
        due = due_reminders([at_limit, at_lower], fixed_now, minutes_before=15)
        assert [e for e, _ in due] == [at_limit]

    def test_wider_window(self, fixed_now):
        event = _event(fixed_now + timedelta(minutes=11))
        assert due_reminders([event], fixed_now, minutes_before=15, window_minutes=5)

    def test_all_day_and_past_events_are_skipped(self, fixed_now):
        all_day = CalendarEvent(subject="Holiday", start=None, end=None)
        past = _event(fixed_now - timedelta(minutes=5))
        assert due_reminders([all_day, past], fixed_now, minutes_before=15) == []

    def test_reminder_text(self, fixed_now):
        event = _event(fixed_now, subject="Design review", location="Room 4")
        assert reminder_text(event, 14.6) == '⏰ Reminder: "Design review" at Room 4 starts in 15 minutes!'


class TestMeetingReminderJob:

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_sends_one_reminder_per_due_event(self, mock_auth, gateway, clock, fixed_now):
        gateway.today_events_result = [
            _event(fixed_now + timedelta(minutes=14.5), subject="Standup"),
            _event(fixed_now + timedelta(hours=2), subject="Later"),
        ]
        notifier = _notifier()

        sent = asyncio.run(_scheduler(gateway, notifier, clock).check_meeting_reminders())

        assert sent == 1
        notifier.send.assert_awaited_once()
        assert '"Standup"' in notifier.send.await_args.args[0]

    @patch("app.services.scheduler.is_authenticated", return_value=False)
    def test_does_nothing_when_not_connected(self, mock_auth, gateway, clock, fixed_now):
        gateway.today_events_result = [_event(fixed_now + timedelta(minutes=14.5))]
        notifier = _notifier()

        assert asyncio.run(_scheduler(gateway, notifier, clock).check_meeting_reminders()) == 0
        notifier.send.assert_not_awaited()

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_read_failure_is_logged_not_raised(self, mock_auth, gateway, clock):
        gateway.today_events_result = RuntimeError("calendar down")
        assert asyncio.run(_scheduler(gateway, _notifier(), clock).check_meeting_reminders()) == 0


class TestUrgentEmailSweep:

    def test_only_new_important_mail_alerts(self, gateway, fixed_now):
        cursor = fixed_now - timedelta(minutes=30)
        gateway.unread_messages_result = [
            _mail(fixed_now - timedelta(minutes=10), subject="Outage"),
            _mail(fixed_now - timedelta(minutes=10), subject="Newsletter", important=False),
            _mail(fixed_now - timedelta(hours=2), subject="Old news"),
        ]
        notifier = _notifier()

        new_cursor = asyncio.run(sweep_urgent_emails(gateway, notifier, cursor, fixed_now))

        assert new_cursor == fixed_now
        notifier.send.assert_awaited_once_with('🚨 Urgent email from Bob: "Outage"')

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_job_advances_cursor_and_does_not_repeat(self, mock_auth, gateway, clock, fixed_now):
        notifier = _notifier()
        scheduler = _scheduler(gateway, notifier, clock)

        async def run():
            scheduler.start()
            try:
                assert scheduler.email_cursor == fixed_now
                clock.now = fixed_now + timedelta(minutes=30)
                gateway.unread_messages_result = [_mail(fixed_now + timedelta(minutes=5))]
                await scheduler.check_urgent_emails()
                await scheduler.check_urgent_emails()
            finally:
                scheduler.stop()

        asyncio.run(run())

        assert notifier.send.await_count == 1
        assert scheduler.email_cursor == fixed_now + timedelta(minutes=30)

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_failed_read_keeps_cursor(self, mock_auth, gateway, clock, fixed_now):
        scheduler = _scheduler(gateway, _notifier(), clock)

        async def run():
            scheduler.start()
            try:
                clock.now = fixed_now + timedelta(minutes=30)
                gateway.unread_messages_result = RuntimeError("Gmail unavailable")
                await scheduler.check_urgent_emails()
            finally:
                scheduler.stop()

        asyncio.run(run())

        assert scheduler.email_cursor == fixed_now

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_skipped_outside_active_hours(self, mock_auth, gateway, clock, fixed_now):
        # 23:00 UTC is 19:00 in New York, after the 09:00-17:00 window
        clock.now = datetime(2026, 3, 10, 23, 0, tzinfo=timezone.utc)
        gateway.unread_messages_result = [_mail(clock.now)]
        notifier = _notifier()

        asyncio.run(_scheduler(gateway, notifier, clock).check_urgent_emails())

        notifier.send.assert_not_awaited()


class TestSchedulerLifecycle:

    def test_default_jobs(self, gateway, clock):
        scheduler = _scheduler(gateway, _notifier(), clock)

        async def run():
            scheduler.start()
            try:
                return {job["id"] for job in scheduler.jobs()}
            finally:
                scheduler.stop()

        job_ids = asyncio.run(run())

        # evening recap is off by default
        assert job_ids == {"morning_summary", "meeting_reminders", "urgent_email_alerts"}
        assert scheduler.running is False

    def test_disabled_schedule_starts_nothing(self, gateway, clock):
        scheduler = _scheduler(gateway, _notifier(), clock, ScheduleConfig(enabled=False))

        async def run():
            scheduler.start()
            return scheduler.running

        assert asyncio.run(run()) is False
        assert scheduler.jobs() == []

    @patch("app.services.scheduler.is_authenticated", return_value=True)
    def test_morning_summary_prefixes_greeting(self, mock_auth, gateway, clock):
        notifier = _notifier()
        scheduler = _scheduler(gateway, notifier, clock)
        scheduler.assistant.process_message = AsyncMock(return_value="Two meetings today.")

        asyncio.run(scheduler.send_morning_summary())

        notifier.send.assert_awaited_once_with(
            "Good morning! Here's your daily briefing.\n\nTwo meetings today."
        )

    @patch("app.services.scheduler.is_authenticated", return_value=False)
    def test_digest_skipped_when_not_connected(self, mock_auth, gateway, clock):
        notifier = _notifier()
        scheduler = _scheduler(gateway, notifier, clock)
        scheduler.assistant.process_message = AsyncMock()

        asyncio.run(scheduler.send_evening_recap())

        scheduler.assistant.process_message.assert_not_awaited()
        notifier.send.assert_not_awaited()
