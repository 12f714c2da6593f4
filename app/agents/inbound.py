"""
Shared handling for text arriving over SMS or Telegram.

Both adapters call ``handle_inbound_text`` so the sender check, the "test"
echo, the not-connected prompt and the error fallback behave the same way on
every channel. It always returns reply text and never raises.
"""
from __future__ import annotations

import logging

from app.agents.assistant import AIProcessingError, get_assistant
from app.core.google_tools import is_authenticated

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "⛔ Unauthorized. This assistant is configured for a specific user."
EMPTY_MESSAGE = "Ask me about your emails or calendar, e.g. \"What's on my calendar today?\""
NOT_CONNECTED_MESSAGE = (
    "Google account not connected yet. Send \"test\" to verify messaging works, "
    "or visit the web dashboard to sign in."
)
ERROR_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."


def is_authorized_sender(sender: str | int | None, allowed_sender: str | None) -> bool:
    """An unset allow-list admits everyone; otherwise the ids must match exactly."""
    if not allowed_sender:
        return True
    return sender is not None and str(sender).strip() == str(allowed_sender).strip()


def echo_reply(text: str, channel: str) -> str:
    return f'✅ {channel} is working! You said: "{text}"'


async def handle_inbound_text(
    text: str | None,
    channel: str,
    sender: str | int | None = None,
    allowed_sender: str | None = None,
    unauthorized_reply: str = UNAUTHORIZED_MESSAGE,
) -> str:
    if not is_authorized_sender(sender, allowed_sender):
        logger.warning(f"[inbound] Ignoring {channel} message from unauthorized sender: {sender}")
        return unauthorized_reply

    text = (text or "").strip()
    if not text:
        return EMPTY_MESSAGE

    if text.lower().startswith("test"):
        logger.info(f"[inbound] Test mode on {channel} - echoing back")
        return echo_reply(text, channel)

    if not is_authenticated():
        return NOT_CONNECTED_MESSAGE

    try:
        reply = await get_assistant().process_message(text)
    except AIProcessingError as e:
        logger.error(f"[inbound] {channel} message failed: {e}")
        return ERROR_MESSAGE
    except Exception as e:
        logger.exception(f"[inbound] Unexpected error handling {channel} message: {e}")
        return ERROR_MESSAGE

    logger.info(f"[inbound] {channel} reply: {reply}")
    return reply
