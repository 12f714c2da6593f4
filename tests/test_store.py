# tests/test_store.py
#
# Tests for the JSON record files: tokens, memory and schedule.

import json
from unittest.mock import patch

from app.core.google_tools import get_account, is_authenticated, save_tokens
from app.core.store import JsonFileStore
from app.services.memory import load_memory
from app.services.schedule import ScheduleConfig, load_schedule


class TestJsonFileStore:

    def test_missing_file_loads_none(self, tmp_path):
        store = JsonFileStore(tmp_path / "absent.json")
        assert store.exists() is False
        assert store.load() is None

    def test_save_replaces_whole_record(self, tmp_path):
        store = JsonFileStore(tmp_path / "record.json")
        assert store.save({"a": 1, "b": 2}) is True
        assert store.save({"c": 3}) is True

        assert store.load() == {"c": 3}
        # no temp files are left behind
        assert [p.name for p in tmp_path.iterdir()] == ["record.json"]

    def test_creates_parent_directory(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "dir" / "record.json")
        assert store.save({"ok": True}) is True
        assert store.load() == {"ok": True}

    def test_corrupt_file_loads_none(self, tmp_path):
        path = tmp_path / "record.json"
        path.write_text("{not json")
        assert JsonFileStore(path).load() is None

    def test_non_object_loads_none(self, tmp_path):
        path = tmp_path / "record.json"
        path.write_text("[1, 2, 3]")
        assert JsonFileStore(path).load() is None

    def test_failed_write_keeps_previous_record(self, tmp_path):
        store = JsonFileStore(tmp_path / "record.json")
        store.save({"version": 1})

        with patch("app.core.store.os.replace", side_effect=OSError("disk full")):
            assert store.save({"version": 2}) is False

        assert store.load() == {"version": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["record.json"]

    def test_clear_is_idempotent(self, tmp_path):
        store = JsonFileStore(tmp_path / "record.json")
        store.save({"x": 1})
        store.clear()
        store.clear()
        assert store.exists() is False


class TestTokenRecord:

    def test_not_authenticated_without_tokens(self):
        assert is_authenticated() is False
        assert get_account() is None

    def test_refresh_token_marks_account_connected(self):
        save_tokens({
            "access_token": "ya29.x",
            "refresh_token": "1//refresh",
            "account": {"email": "me@example.com", "name": "Me"},
        })
        assert is_authenticated() is True
        assert get_account() == {"email": "me@example.com", "name": "Me"}

    def test_access_token_alone_is_not_enough(self):
        save_tokens({"access_token": "ya29.x"})
        assert is_authenticated() is False


class TestMemoryRecord:

    def test_missing_file_is_empty_memory(self, tmp_path):
        memory = load_memory(JsonFileStore(tmp_path / "memory.json"))
        assert memory.user_name == ""
        assert memory.notes == []

    def test_loads_preferences(self, tmp_path):
        path = tmp_path / "memory.json"
        path.write_text(json.dumps({
            "user_name": "Alex",
            "preferences": {"important_senders": ["boss@example.com"]},
            "notes": ["Prefers mornings"],
        }))
        memory = load_memory(JsonFileStore(path))
        assert memory.user_name == "Alex"
        assert memory.preferences.important_senders == ["boss@example.com"]

    def test_invalid_memory_falls_back_to_empty(self, tmp_path):
        path = tmp_path / "memory.json"
        path.write_text(json.dumps({"notes": "not a list"}))
        assert load_memory(JsonFileStore(path)).notes == []


class TestScheduleRecord:

    def test_defaults(self, tmp_path):
        config = load_schedule(JsonFileStore(tmp_path / "schedule.json"))
        assert config == ScheduleConfig()
        assert config.morning_summary.time == "08:00"
        assert config.evening_recap.enabled is False
        assert config.evening_recap.time == "18:00"
        assert config.meeting_reminders.minutes_before == 15
        assert config.urgent_email_alerts.check_every_minutes == 30
        assert config.urgent_email_alerts.only_during.start == "09:00"

    def test_camel_case_keys_on_disk(self, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps({
            "timezone": "Europe/London",
            "morningSummary": {"time": "07:30"},
            "meetingReminders": {"minutesBefore": 10},
            "urgentEmailAlerts": {"onlyDuring": {"start": "08:00", "end": "20:00"}},
        }))
        config = load_schedule(JsonFileStore(path))

        assert config.timezone == "Europe/London"
        assert config.morning_summary.time == "07:30"
        # untouched fields keep their defaults
        assert config.morning_summary.message == "Good morning! Here's your daily briefing."
        assert config.meeting_reminders.minutes_before == 10
        assert config.urgent_email_alerts.only_during.contains("19:45")

    def test_invalid_time_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps({"morningSummary": {"time": "25:99"}}))
        assert load_schedule(JsonFileStore(path)) == ScheduleConfig()

    def test_unknown_timezone_falls_back_to_defaults(self, tmp_path):
        store = JsonFileStore(tmp_path / "schedule.json")
        store.save({"timezone": "Mars/Olympus", "morningSummary": {"time": "07:00"}})

        config = load_schedule(store)

        assert config == ScheduleConfig()
        assert config.timezone == "America/New_York"

    def test_serializes_with_camel_case(self):
        dumped = ScheduleConfig().model_dump(by_alias=True)
        assert "morningSummary" in dumped
        assert dumped["urgentEmailAlerts"]["checkEveryMinutes"] == 30
