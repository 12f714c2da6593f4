from __future__ import annotations

import logging
from typing import Any

from app.services.channels import NotificationError
from app.services.sms import SmsChannel
from app.services.telegram_bot import TelegramChannel

logger = logging.getLogger(__name__)


class Notifier:
    """Delivers proactive messages: Telegram first, SMS as fallback."""

    def __init__(self, channels: list[Any] | None = None) -> None:
        self._channels = channels if channels is not None else [TelegramChannel(), SmsChannel()]

    @property
    def channels(self) -> list[Any]:
        return [channel for channel in self._channels if channel.configured]

    async def send(self, message: str) -> bool:
        """Returns True once one channel has delivered the message."""
        for channel in self.channels:
            try:
                await channel.send_to_user(message)
            except NotificationError as e:
                logger.error(f"[notifier] {channel.name} notification failed: {e}")
                continue
            logger.info(f"[notifier] Notification sent via {channel.name}")
            return True

        logger.warning("[notifier] No notification channel available")
        return False


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = Notifier()
    return _notifier
