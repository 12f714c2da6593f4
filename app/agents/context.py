"""
Context assembly for the assistant.

Pulls today's mail, today's calendar and the unread list from the gateway and
renders them into one plain-text block for the system prompt. Each read is
isolated: a failing read becomes an inline "Unable to fetch ..." line (or, for
the unread list, nothing at all) instead of failing the whole reply.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.services.mailbox import CalendarEvent, Message
from app.services.memory import UserMemory

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%a %b %d, %Y %I:%M %p"


@dataclass
class MailboxSnapshot:
    """Everything one invocation knows about the mailbox. Never persisted."""

    today_messages: list[Message] = field(default_factory=list)
    today_events: list[CalendarEvent] = field(default_factory=list)
    unread_messages: list[Message] | None = None
    messages_error: str | None = None
    events_error: str | None = None

    @property
    def high_priority_unread(self) -> list[Message]:
        return [m for m in self.unread_messages or [] if m.is_important]


def _format_datetime(value: datetime, tz: tzinfo) -> str:
    return value.astimezone(tz).strftime(DATETIME_FORMAT)


def format_message(message: Message, tz: tzinfo) -> str:
    importance = "[HIGH PRIORITY] " if message.is_important else ""
    read_status = "" if message.is_read else "[UNREAD] "
    preview = message.preview or "No preview available"
    return (
        f"{importance}{read_status}From: {message.sender}\n"
        f"Date: {_format_datetime(message.received_at, tz)}\n"
        f"Subject: {message.subject}\n"
        f"Preview: {preview}\n"
    )


def format_event(event: CalendarEvent, tz: tzinfo) -> str:
    if event.is_all_day:
        when = f"All day ({event.all_day_date.isoformat()})"
    elif event.start and event.end:
        when = f"{_format_datetime(event.start, tz)} - {_format_datetime(event.end, tz)}"
    else:
        when = "Unknown"
    details = f"Details: {event.body_preview}\n" if event.body_preview else ""
    return (
        f"Event: {event.subject}\n"
        f"Time: {when}\n"
        f"Location: {event.location or 'No location'}\n"
        f"Organizer: {event.organizer or 'Unknown'}\n"
        f"{details}"
    )


def format_memory(memory: UserMemory) -> str:
    """Render stored preferences; empty memory renders as an empty string."""
    lines: list[str] = []

    if memory.user_name:
        lines.append(f"User's name: {memory.user_name}")

    prefs = memory.preferences
    if prefs.summary_style:
        lines.append(f"Preferred summary style: {prefs.summary_style}")
    if prefs.important_senders:
        lines.append(f"Important senders to highlight: {', '.join(prefs.important_senders)}")
    if prefs.important_keywords:
        lines.append(f"Important keywords to watch for: {', '.join(prefs.important_keywords)}")

    if memory.notes:
        lines.append("")
        lines.append("Notes about user:")
        lines.extend(f"- {note}" for note in memory.notes)

    if memory.custom_instructions:
        lines.append("")
        lines.append(f"Custom instructions: {memory.custom_instructions}")

    if not lines:
        return ""
    return "\n=== USER PREFERENCES & MEMORY ===\n" + "\n".join(lines) + "\n"


async def fetch_snapshot(gateway: Any) -> MailboxSnapshot:
    """Run the three reads in order, recording failures instead of raising."""
    snapshot = MailboxSnapshot()

    try:
        snapshot.today_messages = await gateway.today_messages()
    except Exception as e:
        logger.warning(f"[context] Unable to fetch today's emails: {e}")
        snapshot.messages_error = str(e)

    try:
        snapshot.today_events = await gateway.today_events()
    except Exception as e:
        logger.warning(f"[context] Unable to fetch today's events: {e}")
        snapshot.events_error = str(e)

    try:
        snapshot.unread_messages = await gateway.unread_messages()
    except Exception as e:
        logger.warning(f"[context] Unable to fetch unread emails: {e}")

    return snapshot


def render_snapshot(snapshot: MailboxSnapshot, tz: tzinfo) -> str:
    parts: list[str] = []

    if snapshot.messages_error is not None:
        parts.append(f"\n=== EMAILS ===\nUnable to fetch emails: {snapshot.messages_error}\n")
    else:
        messages = snapshot.today_messages
        parts.append(f"\n=== TODAY'S EMAILS ({len(messages)} total) ===\n")
        if messages:
            for index, message in enumerate(messages, 1):
                parts.append(f"\n--- Email {index} ---\n{format_message(message, tz)}")
        else:
            parts.append("No emails received today.\n")

    if snapshot.events_error is not None:
        parts.append(f"\n=== CALENDAR ===\nUnable to fetch calendar: {snapshot.events_error}\n")
    else:
        events = snapshot.today_events
        parts.append(f"\n=== TODAY'S CALENDAR ({len(events)} events) ===\n")
        if events:
            for index, event in enumerate(events, 1):
                parts.append(f"\n--- Event {index} ---\n{format_event(event, tz)}")
        else:
            parts.append("No events scheduled for today.\n")

    if snapshot.unread_messages is not None:
        parts.append(
            f"\n=== UNREAD EMAILS ===\nYou have {len(snapshot.unread_messages)} unread emails.\n"
        )
        high_priority = snapshot.high_priority_unread
        if high_priority:
            parts.append(f"\n=== HIGH PRIORITY UNREAD ({len(high_priority)}) ===\n")
            for index, message in enumerate(high_priority, 1):
                parts.append(f"\n--- Priority Email {index} ---\n{format_message(message, tz)}")

    return "".join(parts)


async def build_context(gateway: Any, tz: tzinfo | None = None) -> str:
    """Fetch and render the mailbox/calendar snapshot for one request."""
    tz = tz or ZoneInfo(settings.TIMEZONE)
    snapshot = await fetch_snapshot(gateway)
    return render_snapshot(snapshot, tz)
