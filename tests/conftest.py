# tests/conftest.py
#
# Settings are created at import time, so the required Google client values
# and a scratch DATA_DIR are seeded before any app module is imported.

import os
import tempfile

os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="inbox-assistant-tests-")
os.environ["SITE_PASSWORD"] = ""
os.environ["MOCK_GOOGLE"] = "false"
os.environ["USER_PHONE_NUMBER"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""
os.environ["TELEGRAM_BOT_TOKEN"] = ""

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from app.core.google_tools import set_token_store  # noqa: E402
from app.core.store import JsonFileStore  # noqa: E402


@pytest.fixture(autouse=True)
def token_store(tmp_path):
    """Every test gets its own empty tokens.json."""
    store = JsonFileStore(tmp_path / "tokens.json")
    set_token_store(store)
    yield store
    set_token_store(None)


class FixedClock:
    """Callable clock that tests can move forward by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fixed_now():
    # 14:00 in America/New_York
    return datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return FixedClock(fixed_now)


class FakeGateway:
    """In-memory stand-in for MailboxGateway."""

    def __init__(self, today_messages=None, today_events=None, unread_messages=None):
        self.today_messages_result = today_messages or []
        self.today_events_result = today_events or []
        self.unread_messages_result = unread_messages or []
        self.created = []
        self.create_error = None

    async def today_messages(self):
        if isinstance(self.today_messages_result, Exception):
            raise self.today_messages_result
        return self.today_messages_result

    async def today_events(self):
        if isinstance(self.today_events_result, Exception):
            raise self.today_events_result
        return self.today_events_result

    async def unread_messages(self):
        if isinstance(self.unread_messages_result, Exception):
            raise self.unread_messages_result
        return self.unread_messages_result

    async def create_event(self, directive):
        if self.create_error is not None:
            raise self.create_error
        self.created.append(directive)
        return {"id": f"event{len(self.created):03d}"}


@pytest.fixture
def gateway():
    return FakeGateway()
