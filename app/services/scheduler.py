"""
Timer-driven jobs: morning digest, evening recap, meeting reminders and
urgent-email alerts.

Every job checks that the Google account is connected first and quietly does
nothing otherwise. Jobs log their own failures; nothing propagates into
APScheduler.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.agents.assistant import Assistant, get_assistant
from app.core.google_tools import is_authenticated
from app.services.mailbox import CalendarEvent, MailboxGateway
from app.services.notifier import Notifier, get_notifier
from app.services.schedule import ScheduleConfig, load_schedule

logger = logging.getLogger(__name__)

MORNING_PROMPT = (
    "Give me my morning briefing: What's on my calendar today? "
    "Any important emails I should know about? Keep it concise."
)
EVENING_PROMPT = (
    "Give me a quick recap of today: How many emails did I get? "
    "Any I haven't read? Any meetings I had? Keep it brief."
)


def due_reminders(
    events: list[CalendarEvent],
    now: datetime,
    minutes_before: int,
    window_minutes: int = 1,
) -> list[tuple[CalendarEvent, float]]:
    """Events starting inside ``(minutes_before - window, minutes_before]`` from now.

    With sweeps every ``window_minutes`` each event falls in exactly one window.
    """
    due = []
    for event in events:
        if event.start is None:
            continue
        minutes_until = (event.start - now).total_seconds() / 60
        if minutes_until > 0 and minutes_before - window_minutes < minutes_until <= minutes_before:
            due.append((event, minutes_until))
    return due


def reminder_text(event: CalendarEvent, minutes_until: float) -> str:
    location = f" at {event.location}" if event.location else ""
    return f'⏰ Reminder: "{event.subject}"{location} starts in {round(minutes_until)} minutes!'


async def sweep_urgent_emails(
    gateway: Any,
    notifier: Notifier,
    cursor: datetime,
    now: datetime,
) -> datetime:
    """Alert on unread high-importance mail newer than ``cursor``.

    Returns the cursor for the next sweep. If the read fails the exception
    propagates and the caller keeps the old cursor.
    """
    messages = await gateway.unread_messages()
    urgent = [m for m in messages if m.is_important and m.received_at > cursor]
    for message in urgent:
        await notifier.send(f'🚨 Urgent email from {message.sender}: "{message.subject}"')
        logger.info(f"[scheduler] Urgent email alert sent for: {message.subject}")
    return now


class AssistantScheduler:
    def __init__(
        self,
        assistant: Assistant | None = None,
        notifier: Notifier | None = None,
        gateway: Any | None = None,
        schedule_loader: Callable[[], ScheduleConfig] = load_schedule,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._assistant = assistant
        self._notifier = notifier
        self._gateway = gateway
        self._schedule_loader = schedule_loader
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._scheduler: AsyncIOScheduler | None = None
        self._config: ScheduleConfig = ScheduleConfig()
        self._email_cursor: datetime | None = None
        self._cursor_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def config(self) -> ScheduleConfig:
        return self._config

    @property
    def email_cursor(self) -> datetime | None:
        return self._email_cursor

    @property
    def assistant(self) -> Assistant:
        return self._assistant or get_assistant()

    @property
    def notifier(self) -> Notifier:
        return self._notifier or get_notifier()

    @property
    def gateway(self) -> Any:
        return self._gateway or MailboxGateway(self._config.timezone)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self._config.timezone)

    def jobs(self) -> list[dict[str, Any]]:
        if self._scheduler is None:
            return []
        return [
            {
                "id": job.id,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self._scheduler.get_jobs()
        ]

    def start(self) -> None:
        self.stop()

        self._config = self._schedule_loader()
        config = self._config
        if not config.enabled:
            logger.info("[scheduler] Scheduler is disabled")
            return

        if self._email_cursor is None:
            self._email_cursor = self._clock()

        tz = self.tz
        scheduler = AsyncIOScheduler(timezone=tz)

        if config.morning_summary.enabled:
            hour, minute = config.morning_summary.time.split(":")
            scheduler.add_job(
                self.send_morning_summary,
                CronTrigger(hour=int(hour), minute=int(minute), timezone=tz),
                id="morning_summary",
            )
            logger.info(f"[scheduler] Morning summary scheduled for {config.morning_summary.time}")

        if config.evening_recap.enabled:
            hour, minute = config.evening_recap.time.split(":")
            scheduler.add_job(
                self.send_evening_recap,
                CronTrigger(hour=int(hour), minute=int(minute), timezone=tz),
                id="evening_recap",
            )
            logger.info(f"[scheduler] Evening recap scheduled for {config.evening_recap.time}")

        if config.meeting_reminders.enabled:
            reminders = config.meeting_reminders
            scheduler.add_job(
                self.check_meeting_reminders,
                IntervalTrigger(minutes=reminders.window_minutes, timezone=tz),
                id="meeting_reminders",
            )
            logger.info(
                f"[scheduler] Meeting reminders enabled ({reminders.minutes_before} min before, "
                f"sweep every {reminders.window_minutes} min)"
            )

        if config.urgent_email_alerts.enabled:
            minutes = config.urgent_email_alerts.check_every_minutes
            scheduler.add_job(
                self.check_urgent_emails,
                IntervalTrigger(minutes=minutes, timezone=tz),
                id="urgent_email_alerts",
            )
            logger.info(f"[scheduler] Urgent email alerts enabled (every {minutes} min)")

        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"[scheduler] Scheduler started with {len(scheduler.get_jobs())} jobs")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("[scheduler] Scheduler stopped")

    def reload(self) -> None:
        """Stop, re-read schedule.json and start again."""
        logger.info("[scheduler] Reloading schedule")
        self.stop()
        self.start()

    async def _send_digest(self, greeting: str, prompt: str, label: str) -> None:
        if not is_authenticated():
            logger.info(f"[scheduler] Skipping {label} - not authenticated")
            return
        try:
            summary = await self.assistant.process_message(prompt)
            await self.notifier.send(f"{greeting}\n\n{summary}")
            logger.info(f"[scheduler] {label.capitalize()} sent")
        except Exception as e:
            logger.error(f"[scheduler] Failed to send {label}: {e}", exc_info=True)

    async def send_morning_summary(self) -> None:
        await self._send_digest(self._config.morning_summary.message, MORNING_PROMPT, "morning summary")

    async def send_evening_recap(self) -> None:
        await self._send_digest(self._config.evening_recap.message, EVENING_PROMPT, "evening recap")

    async def check_meeting_reminders(self) -> int:
        """Returns the number of reminders sent."""
        if not is_authenticated():
            return 0
        reminders = self._config.meeting_reminders
        try:
            events = await self.gateway.today_events()
            due = due_reminders(events, self._clock(), reminders.minutes_before, reminders.window_minutes)
            for event, minutes_until in due:
                await self.notifier.send(reminder_text(event, minutes_until))
                logger.info(f"[scheduler] Meeting reminder sent for: {event.subject}")
            return len(due)
        except Exception as e:
            logger.error(f"[scheduler] Failed to check meeting reminders: {e}", exc_info=True)
            return 0

    async def check_urgent_emails(self) -> None:
        if not is_authenticated():
            return

        now = self._clock()
        window = self._config.urgent_email_alerts.only_during
        if not window.contains(now.astimezone(self.tz).strftime("%H:%M")):
            return

        async with self._cursor_lock:
            cursor = self._email_cursor or now
            try:
                self._email_cursor = await sweep_urgent_emails(self.gateway, self.notifier, cursor, now)
            except Exception as e:
                logger.error(f"[scheduler] Failed to check urgent emails: {e}", exc_info=True)


_scheduler: AssistantScheduler | None = None


def get_scheduler() -> AssistantScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AssistantScheduler()
    return _scheduler
