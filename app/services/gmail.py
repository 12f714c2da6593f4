from __future__ import annotations

import logging
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.core.google_tools import GoogleAuthError

logger = logging.getLogger(__name__)


def _handle_google_error(error: HttpError, operation: str) -> None:
    """Handle Google API HTTP errors and raise appropriate exceptions."""
    status = error.resp.status if error.resp else None
    logger.error(f"[gmail] {operation} failed with status {status}: {error}")
    if status in (401, 403):
        raise GoogleAuthError(
            f"Google authentication failed: {error.reason}. Please sign in again."
        )
    raise error


class GmailService:
    def __init__(self, access_token: str) -> None:
        self._service = build(
            "gmail",
            "v1",
            credentials=Credentials(access_token),
            cache_discovery=False,
        )

    def list_received_since(self, epoch_seconds: int, max_results: int = 50) -> list[dict[str, Any]]:
        """Messages received after the given instant, newest first."""
        return self.search_messages(f"after:{epoch_seconds} -in:chats", max_results)

    def list_unread(self, max_results: int = 50) -> list[dict[str, Any]]:
        return self.search_messages("is:unread in:inbox", max_results)

    def search_messages(self, query: str, max_results: int) -> list[dict[str, Any]]:
        try:
            messages = (
                self._service.users()
                .messages()
                .list(
                    userId="me",
                    q=query,
                    maxResults=max_results,
                )
                .execute()
                .get("messages", [])
            )
            return [self._get_message_metadata(message["id"]) for message in messages]
        except HttpError as e:
            _handle_google_error(e, "search_messages")

    def _get_message_metadata(self, message_id: str) -> dict[str, Any]:
        try:
            message = (
                self._service.users()
                .messages()
                .get(
                    userId="me",
                    id=message_id,
                    format="metadata",
                    metadataHeaders=["From", "Subject", "Date"],
                )
                .execute()
            )
            headers = {
                header["name"]: header.get("value", "")
                for header in message.get("payload", {}).get("headers", [])
            }
            return {
                "id": message["id"],
                "thread_id": message.get("threadId", ""),
                "from": headers.get("From", ""),
                "subject": headers.get("Subject", ""),
                "date": headers.get("Date", ""),
                "internal_date": int(message.get("internalDate", 0)),
                "snippet": message.get("snippet", ""),
                "labels": message.get("labelIds", []),
            }
        except HttpError as e:
            _handle_google_error(e, "_get_message_metadata")
