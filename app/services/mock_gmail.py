"""Mock Gmail service for running without OAuth."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)


class MockGmailService:
    """Mock Gmail service with realistic test data."""

    def __init__(self, access_token: str | None = None) -> None:
        """Initialize mock service (access_token ignored)."""
        self._emails = self._generate_mock_emails()

    def _generate_mock_emails(self) -> list[dict[str, Any]]:
        now = datetime.now(timezone.utc)

        def _received(hours_ago: float) -> int:
            return int((now - timedelta(hours=hours_ago)).timestamp() * 1000)

        return [
            {
                "id": "msg001",
                "thread_id": "thread001",
                "from": "John Doe <john.doe@company.com>",
                "subject": "Q4 Planning Meeting - Action Required",
                "internal_date": _received(0.5),
                "snippet": "Hi, we need to schedule our Q4 planning meeting. Can you share your availability for next week?",
                "labels": ["INBOX", "UNREAD", "IMPORTANT"],
            },
            {
                "id": "msg002",
                "thread_id": "thread002",
                "from": "Jane Smith <jane.smith@client.com>",
                "subject": "Project Update - Review Needed",
                "internal_date": _received(2),
                "snippet": "Please review the attached project timeline and provide feedback by EOD.",
                "labels": ["INBOX", "UNREAD"],
            },
            {
                "id": "msg003",
                "thread_id": "thread003",
                "from": "notifications@github.com",
                "subject": "New PR #42: Add email batching",
                "internal_date": _received(5),
                "snippet": "A new pull request has been opened by @contributor",
                "labels": ["INBOX", "CATEGORY_UPDATES"],
            },
            {
                "id": "msg004",
                "thread_id": "thread004",
                "from": "Finance Team <finance@company.com>",
                "subject": "Expense report approved",
                "internal_date": _received(30),
                "snippet": "Your expense report for last month has been approved.",
                "labels": ["INBOX", "UNREAD"],
            },
        ]

    def list_received_since(self, epoch_seconds: int, max_results: int = 50) -> list[dict[str, Any]]:
        logger.info(f"[mock_gmail] Listing emails received after {epoch_seconds}")
        results = [e for e in self._emails if e["internal_date"] > epoch_seconds * 1000]
        return sorted(results, key=lambda e: e["internal_date"], reverse=True)[:max_results]

    def list_unread(self, max_results: int = 50) -> list[dict[str, Any]]:
        logger.info("[mock_gmail] Listing unread emails")
        results = [e for e in self._emails if "UNREAD" in e["labels"]]
        return sorted(results, key=lambda e: e["internal_date"], reverse=True)[:max_results]
