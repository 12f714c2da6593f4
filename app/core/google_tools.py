from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.core.config import settings
from app.core.google_oauth import get_valid_access_token
from app.core.store import JsonFileStore

if TYPE_CHECKING:
    from app.services.calendar import CalendarService
    from app.services.gmail import GmailService
    from app.services.mock_calendar import MockCalendarService
    from app.services.mock_gmail import MockGmailService

logger = logging.getLogger(__name__)


class GoogleAuthError(Exception):
    """Raised when Google credentials are missing, expired or rejected."""


_token_store: JsonFileStore | None = None


def get_token_store() -> JsonFileStore:
    """Get the store holding the single user's token record."""
    global _token_store
    if _token_store is None:
        _token_store = JsonFileStore(settings.token_file)
    return _token_store


def set_token_store(store: JsonFileStore | None) -> None:
    """Swap the token store (None resets to the configured file)."""
    global _token_store
    _token_store = store


def load_tokens() -> dict[str, Any] | None:
    return get_token_store().load()


def save_tokens(token_data: dict[str, Any]) -> bool:
    return get_token_store().save(token_data)


def clear_tokens() -> None:
    logger.info("[google] Clearing stored tokens")
    get_token_store().clear()


def is_authenticated() -> bool:
    """The account counts as connected once a refresh token is on disk."""
    if settings.MOCK_GOOGLE:
        return True
    tokens = load_tokens()
    return bool(tokens and tokens.get("refresh_token"))


def get_account() -> dict[str, Any] | None:
    tokens = load_tokens()
    if not tokens:
        return None
    return tokens.get("account")


def get_access_token() -> str:
    """Return a usable access token, persisting it when it had to be refreshed."""
    tokens = load_tokens()
    if not tokens or not tokens.get("refresh_token"):
        raise GoogleAuthError("Not authenticated. Please sign in first.")

    access_token, updated = get_valid_access_token(tokens)
    if updated:
        # keep the account descriptor across refreshes
        updated["account"] = tokens.get("account")
        save_tokens(updated)
    if not access_token:
        raise GoogleAuthError("Session expired. Please sign in again.")
    return access_token


_mock_services: tuple[MockGmailService, MockCalendarService] | None = None


def _get_mock_services() -> tuple[MockGmailService, MockCalendarService]:
    """Mock services live for the whole process so created events stick."""
    global _mock_services
    if _mock_services is None:
        from app.services.mock_calendar import MockCalendarService
        from app.services.mock_gmail import MockGmailService

        _mock_services = (MockGmailService(), MockCalendarService())
    return _mock_services


def get_gmail_service() -> GmailService | MockGmailService:
    """Get Gmail service - blocking, call it from a worker thread."""
    if settings.MOCK_GOOGLE:
        return _get_mock_services()[0]

    from app.services.gmail import GmailService

    return GmailService(get_access_token())


def get_calendar_service() -> CalendarService | MockCalendarService:
    """Get Calendar service - blocking, call it from a worker thread."""
    if settings.MOCK_GOOGLE:
        return _get_mock_services()[1]

    from app.services.calendar import CalendarService

    return CalendarService(get_access_token())
