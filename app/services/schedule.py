"""Timer configuration read from schedule.json (camelCase keys on disk)."""
from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.core.store import JsonFileStore

logger = logging.getLogger(__name__)


def _check_clock(value: str) -> str:
    datetime.strptime(value, "%H:%M")
    return value


class _ScheduleModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimedMessage(_ScheduleModel):
    enabled: bool = True
    time: str = "08:00"
    message: str = ""

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_clock(value)


class MorningSummary(TimedMessage):
    enabled: bool = True
    time: str = "08:00"
    message: str = "Good morning! Here's your daily briefing."


class EveningRecap(TimedMessage):
    enabled: bool = False
    time: str = "18:00"
    message: str = "Here's your evening recap."


class MeetingReminders(_ScheduleModel):
    enabled: bool = True
    minutes_before: int = Field(15, ge=1)
    # Sweep cadence equals the window width, so each event is due in exactly one sweep
    window_minutes: int = Field(1, ge=1)


class ClockRange(_ScheduleModel):
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("start", "end")
    @classmethod
    def validate_bounds(cls, value: str) -> str:
        return _check_clock(value)

    def contains(self, clock: str) -> bool:
        return self.start <= clock <= self.end


class UrgentEmailAlerts(_ScheduleModel):
    enabled: bool = True
    check_every_minutes: int = Field(30, ge=1)
    only_during: ClockRange = Field(default_factory=ClockRange)


class ScheduleConfig(_ScheduleModel):
    enabled: bool = True
    timezone: str = "America/New_York"
    morning_summary: MorningSummary = Field(default_factory=MorningSummary)
    evening_recap: EveningRecap = Field(default_factory=EveningRecap)
    meeting_reminders: MeetingReminders = Field(default_factory=MeetingReminders)
    urgent_email_alerts: UrgentEmailAlerts = Field(default_factory=UrgentEmailAlerts)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {value!r}") from e
        return value


def load_schedule(store: JsonFileStore | None = None) -> ScheduleConfig:
    """Read schedule.json, falling back to the defaults when absent or invalid."""
    store = store or JsonFileStore(settings.schedule_file)
    data = store.load()
    if data is None:
        return ScheduleConfig()
    try:
        return ScheduleConfig.model_validate(data)
    except ValidationError as e:
        logger.error(f"[schedule] Invalid schedule config, using defaults: {e}")
        return ScheduleConfig()
