"""
Telegram channel: outbound notifications and the long-polling chat listener.

Free-text messages go through the same inbound handling as the SMS webhook.
When no chat id is configured, each chat gets its identifier back once so the
user can put it in TELEGRAM_CHAT_ID.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from telegram import Bot, Update
from telegram.constants import ChatAction
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from app.agents.assistant import get_assistant
from app.agents.inbound import (
    ERROR_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    handle_inbound_text,
    is_authorized_sender,
)
from app.core.config import settings
from app.core.google_tools import is_authenticated
from app.services.channels import NotificationError, split_message

logger = logging.getLogger(__name__)

TELEGRAM_MAX_LENGTH = 4096

WELCOME_MESSAGE = (
    "👋 Welcome to your inbox assistant!\n\n"
    "You can ask me about:\n"
    "• Your emails - \"What emails came in today?\"\n"
    "• Your calendar - \"What's on my schedule?\"\n"
    "• Add events - \"Add meeting with John tomorrow at 3pm\"\n\n"
    "Commands:\n"
    "/status - Check connection status\n"
    "/summary - Get daily summary\n"
    "/important - Urgent items needing attention\n"
    "/help - Show this message"
)

HELP_MESSAGE = (
    "📧 Inbox Assistant Help\n\n"
    "Ask me things like:\n"
    "• \"What emails came in today?\"\n"
    "• \"Any important emails?\"\n"
    "• \"What's on my calendar?\"\n"
    "• \"Add lunch with Sarah tomorrow at noon\"\n\n"
    "Commands:\n"
    "/start - Welcome message\n"
    "/status - Check connection status\n"
    "/summary - Get daily summary\n"
    "/important - Urgent items needing attention\n"
    "/help - Show this help"
)

NOT_CONNECTED_SUMMARY = "❌ Google not connected. Please sign in via the web dashboard first."


def bootstrap_message(chat_id: int | str) -> str:
    return (
        "👋 Welcome to your inbox assistant!\n\n"
        f"Your Chat ID is: {chat_id}\n\n"
        "Add this to your environment variables as:\n"
        f"TELEGRAM_CHAT_ID={chat_id}\n\n"
        "Then restart the app to enable messaging."
    )


class TelegramChannel:
    name = "telegram"

    def __init__(
        self,
        bot_token: str | None = None,
        chat_id: str | None = None,
        bot: Any | None = None,
    ) -> None:
        self._bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self._chat_id = chat_id if chat_id is not None else settings.TELEGRAM_CHAT_ID
        self._bot = bot

    @property
    def configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    @property
    def bot(self) -> Any:
        if self._bot is None:
            self._bot = Bot(self._bot_token)
        return self._bot

    async def send_to_user(self, message: str) -> None:
        if not self.configured:
            raise NotificationError("Telegram bot not configured or no chat ID set")
        try:
            for part in split_message(message, TELEGRAM_MAX_LENGTH):
                await self.bot.send_message(chat_id=self._chat_id, text=part)
        except TelegramError as e:
            logger.error(f"[telegram] Send failed: {e}")
            raise NotificationError(f"Failed to send Telegram message: {e}") from e


async def _reply(update: Update, text: str) -> None:
    for part in split_message(text, TELEGRAM_MAX_LENGTH):
        await update.message.reply_text(part)


class TelegramBotAdapter:
    """Long-polling listener bound to the configured chat."""

    def __init__(self, bot_token: str | None = None, chat_id: str | None = None) -> None:
        self._bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self._chat_id = chat_id if chat_id is not None else settings.TELEGRAM_CHAT_ID
        self._announced: set[str] = set()
        self._application: Application | None = None

    def _authorized(self, update: Update) -> bool:
        return is_authorized_sender(update.effective_chat.id, self._chat_id)

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        if not self._chat_id:
            self._announced.add(str(chat_id))
            await _reply(update, bootstrap_message(chat_id))
            return
        if not self._authorized(update):
            await _reply(update, UNAUTHORIZED_MESSAGE)
            return
        await _reply(update, WELCOME_MESSAGE)

    async def status_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._authorized(update):
            return
        google_status = "✅ Connected" if is_authenticated() else "❌ Not connected"
        await _reply(update, f"📊 Status:\n\nGoogle: {google_status}\nTelegram: ✅ Working")

    async def _canned_request(
        self,
        update: Update,
        progress: str,
        label: str,
        request: Callable[[], Awaitable[str]],
    ) -> None:
        if not self._authorized(update):
            return
        if not is_authenticated():
            await _reply(update, NOT_CONNECTED_SUMMARY)
            return

        await _reply(update, progress)
        try:
            text = await request()
        except Exception as e:
            logger.error(f"[telegram] {label} failed: {e}")
            text = ERROR_MESSAGE
        await _reply(update, text)

    async def summary_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._canned_request(
            update, "⏳ Getting your summary...", "Summary", lambda: get_assistant().daily_summary()
        )

    async def important_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._canned_request(
            update,
            "⏳ Checking what needs your attention...",
            "Important items",
            lambda: get_assistant().important_items(),
        )

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._authorized(update):
            return
        await _reply(update, HELP_MESSAGE)

    async def handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        text = update.message.text

        if not self._chat_id and str(chat_id) not in self._announced:
            self._announced.add(str(chat_id))
            await _reply(update, bootstrap_message(chat_id))
            return

        if self._authorized(update):
            await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        reply = await handle_inbound_text(
            text,
            channel="Telegram",
            sender=chat_id,
            allowed_sender=self._chat_id,
        )
        await _reply(update, reply)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"[telegram] Update handling error: {context.error}")

    def build_application(self) -> Application:
        application = Application.builder().token(self._bot_token).build()
        application.add_handler(CommandHandler("start", self.start_command))
        application.add_handler(CommandHandler("status", self.status_command))
        application.add_handler(CommandHandler("summary", self.summary_command))
        application.add_handler(CommandHandler("important", self.important_command))
        application.add_handler(CommandHandler("help", self.help_command))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_text))
        application.add_error_handler(self.on_error)
        return application

    async def start(self) -> None:
        self._application = self.build_application()
        await self._application.initialize()
        await self._application.start()
        await self._application.updater.start_polling()
        logger.info("[telegram] Bot polling started")

    async def stop(self) -> None:
        if self._application is None:
            return
        await self._application.updater.stop()
        await self._application.stop()
        await self._application.shutdown()
        self._application = None
        logger.info("[telegram] Bot polling stopped")
