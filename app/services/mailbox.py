"""Async gateway over the user's Gmail inbox and primary Google Calendar."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from email.utils import parseaddr
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.google_tools import get_calendar_service, get_gmail_service

if TYPE_CHECKING:
    from app.agents.directives import EventCreationDirective

logger = logging.getLogger(__name__)

MAX_MESSAGES = 50
MAX_EVENTS = 50
PREVIEW_LENGTH = 255


@dataclass(frozen=True)
class Message:
    sender: str
    received_at: datetime
    subject: str
    preview: str
    is_read: bool
    is_important: bool
    id: str = ""


@dataclass(frozen=True)
class CalendarEvent:
    subject: str
    start: datetime | None
    end: datetime | None
    location: str | None = None
    organizer: str | None = None
    body_preview: str | None = None
    all_day_date: date | None = None
    id: str = ""

    @property
    def is_all_day(self) -> bool:
        return self.all_day_date is not None


def _sender_from_header(value: str) -> str:
    name, address = parseaddr(value or "")
    return name or address or "Unknown"


def message_from_gmail(data: dict[str, Any]) -> Message:
    labels = data.get("labels", [])
    received = datetime.fromtimestamp(data.get("internal_date", 0) / 1000, tz=timezone.utc)
    return Message(
        id=data.get("id", ""),
        sender=_sender_from_header(data.get("from", "")),
        received_at=received,
        subject=data.get("subject") or "(No subject)",
        preview=data.get("snippet", ""),
        is_read="UNREAD" not in labels,
        is_important="IMPORTANT" in labels,
    )


def _parse_event_time(value: dict[str, Any]) -> tuple[datetime | None, date | None]:
    if value.get("dateTime"):
        parsed = datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            tz_name = value.get("timeZone")
            parsed = parsed.replace(tzinfo=ZoneInfo(tz_name) if tz_name else timezone.utc)
        return parsed, None
    if value.get("date"):
        return None, date.fromisoformat(value["date"])
    return None, None


def event_from_google(data: dict[str, Any]) -> CalendarEvent:
    start, all_day = _parse_event_time(data.get("start", {}))
    end, _ = _parse_event_time(data.get("end", {}))
    organizer = data.get("organizer") or {}
    description = (data.get("description") or "").strip()
    return CalendarEvent(
        id=data.get("id", ""),
        subject=data.get("summary") or "(No title)",
        start=start,
        end=end,
        location=data.get("location") or None,
        organizer=organizer.get("displayName") or organizer.get("email") or None,
        body_preview=description[:PREVIEW_LENGTH] or None,
        all_day_date=all_day,
    )


def directive_to_google_event(directive: EventCreationDirective, tz_name: str) -> dict[str, Any]:
    event: dict[str, Any] = {
        "summary": directive.subject,
        "start": {"dateTime": directive.start_date_time, "timeZone": tz_name},
        "end": {"dateTime": directive.end_date_time, "timeZone": tz_name},
    }
    if directive.location:
        event["location"] = directive.location
    if directive.body:
        event["description"] = directive.body
    return event


class MailboxGateway:
    """Read queries plus the single create-event write.

    The Google client libraries are blocking, so every call is pushed to a
    worker thread. Credentials are resolved (and refreshed) per call.
    """

    def __init__(self, tz_name: str | None = None) -> None:
        self._tz_name = tz_name or settings.TIMEZONE
        self._tz = ZoneInfo(self._tz_name)

    def _today_bounds(self, now: datetime | None = None) -> tuple[datetime, datetime]:
        now = (now or datetime.now(timezone.utc)).astimezone(self._tz)
        start = datetime.combine(now.date(), time.min, tzinfo=self._tz)
        return start, start + timedelta(days=1)

    def _today_messages_sync(self) -> list[Message]:
        start, _ = self._today_bounds()
        service = get_gmail_service()
        raw = service.list_received_since(int(start.timestamp()), max_results=MAX_MESSAGES)
        return [message_from_gmail(item) for item in raw]

    def _unread_messages_sync(self) -> list[Message]:
        service = get_gmail_service()
        raw = service.list_unread(max_results=MAX_MESSAGES)
        return [message_from_gmail(item) for item in raw]

    def _today_events_sync(self) -> list[CalendarEvent]:
        start, end = self._today_bounds()
        service = get_calendar_service()
        raw = service.list_events(
            time_min=start.isoformat(),
            time_max=end.isoformat(),
            max_results=MAX_EVENTS,
        )
        return [event_from_google(item) for item in raw]

    def _create_event_sync(self, directive: EventCreationDirective) -> dict[str, Any]:
        service = get_calendar_service()
        return service.create_event(directive_to_google_event(directive, self._tz_name))

    async def today_messages(self) -> list[Message]:
        return await asyncio.to_thread(self._today_messages_sync)

    async def unread_messages(self) -> list[Message]:
        return await asyncio.to_thread(self._unread_messages_sync)

    async def today_events(self) -> list[CalendarEvent]:
        return await asyncio.to_thread(self._today_events_sync)

    async def create_event(self, directive: EventCreationDirective) -> dict[str, Any]:
        logger.info(f"[mailbox] Creating event: {directive.subject}")
        return await asyncio.to_thread(self._create_event_sync, directive)
