"""Mock Calendar service for running without OAuth."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)


def _parse(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MockCalendarService:
    """Mock Calendar service with realistic test data."""

    def __init__(self, access_token: str | None = None) -> None:
        """Initialize mock service (access_token ignored)."""
        self._events = self._generate_mock_events()

    def _generate_mock_events(self) -> list[dict[str, Any]]:
        now = datetime.now(timezone.utc).replace(second=0, microsecond=0)

        return [
            {
                "id": "event001",
                "summary": "Team Standup",
                "start": {"dateTime": (now + timedelta(minutes=45)).isoformat()},
                "end": {"dateTime": (now + timedelta(minutes=75)).isoformat()},
                "organizer": {"email": "john@company.com", "displayName": "John Doe"},
            },
            {
                "id": "event002",
                "summary": "Client Call - Acme Corp",
                "start": {"dateTime": (now + timedelta(hours=3)).isoformat()},
                "end": {"dateTime": (now + timedelta(hours=4)).isoformat()},
                "organizer": {"email": "client@acme.com"},
                "location": "Zoom",
                "description": "Quarterly review of the Acme rollout.",
            },
        ]

    def list_events(self, time_min: str, time_max: str, max_results: int = 50) -> list[dict[str, Any]]:
        """List calendar events in a time range."""
        logger.info(f"[mock_calendar] Listing events from {time_min} to {time_max}")
        min_dt = _parse(time_min)
        max_dt = _parse(time_max)

        results = [
            event
            for event in self._events
            if min_dt <= _parse(event["start"]["dateTime"]) < max_dt
        ]
        results.sort(key=lambda e: _parse(e["start"]["dateTime"]))
        return results[:max_results]

    def create_event(
        self, event: dict[str, Any], send_updates: str = "none"
    ) -> dict[str, Any]:
        """Create a new calendar event (kept in memory only)."""
        logger.info(f"[mock_calendar] Creating event: {event.get('summary')}")
        new_id = f"event{len(self._events) + 1:03d}"
        new_event = {**event, "id": new_id}
        self._events.append(new_event)
        return new_event
