# tests/test_inbound.py
#
# Tests for the handling shared by the SMS webhook and the Telegram bot.

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from app.agents.assistant import AIProcessingError
from app.agents.inbound import (
    EMPTY_MESSAGE,
    ERROR_MESSAGE,
    NOT_CONNECTED_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    handle_inbound_text,
    is_authorized_sender,
)


def _assistant(reply="Here is your day.", error=None):
    assistant = MagicMock()
    assistant.process_message = AsyncMock(return_value=reply, side_effect=error)
    return assistant


class TestAuthorizedSender:

    def test_open_when_no_allow_list(self):
        assert is_authorized_sender("+15550001111", None) is True
        assert is_authorized_sender(None, "") is True

    def test_exact_match_required(self):
        assert is_authorized_sender("+15550001111", "+15550001111") is True
        assert is_authorized_sender("+15550002222", "+15550001111") is False

    def test_numeric_chat_ids_compare_as_strings(self):
        assert is_authorized_sender(42, "42") is True
        assert is_authorized_sender(None, "42") is False


class TestHandleInboundText:

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=False)
    def test_not_connected_makes_no_model_call(self, mock_auth, mock_get_assistant):
        reply = asyncio.run(handle_inbound_text("What's on today?", "SMS"))

        assert reply == NOT_CONNECTED_MESSAGE
        mock_get_assistant.assert_not_called()

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=False)
    def test_test_message_echoes_without_account(self, mock_auth, mock_get_assistant):
        reply = asyncio.run(handle_inbound_text("test 123", "SMS"))

        assert reply == '✅ SMS is working! You said: "test 123"'
        mock_get_assistant.assert_not_called()

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=True)
    def test_echo_is_case_insensitive(self, mock_auth, mock_get_assistant):
        reply = asyncio.run(handle_inbound_text("Test", "Telegram"))
        assert reply == '✅ Telegram is working! You said: "Test"'
        mock_get_assistant.assert_not_called()

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=True)
    def test_unauthorized_sender_is_rejected_first(self, mock_auth, mock_get_assistant):
        reply = asyncio.run(
            handle_inbound_text("test", "SMS", sender="+15550002222", allowed_sender="+15550001111")
        )

        assert reply == UNAUTHORIZED_MESSAGE
        mock_get_assistant.assert_not_called()

    def test_blank_message_gets_usage_hint(self):
        assert asyncio.run(handle_inbound_text("   ", "SMS")) == EMPTY_MESSAGE

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=True)
    def test_connected_message_goes_to_assistant(self, mock_auth, mock_get_assistant):
        assistant = _assistant("You have 2 meetings.")
        mock_get_assistant.return_value = assistant

        reply = asyncio.run(handle_inbound_text("  Any meetings?  ", "SMS"))

        assert reply == "You have 2 meetings."
        assistant.process_message.assert_awaited_once_with("Any meetings?")

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=True)
    def test_processing_error_returns_apology(self, mock_auth, mock_get_assistant):
        mock_get_assistant.return_value = _assistant(error=AIProcessingError("AI processing failed: x"))

        reply = asyncio.run(handle_inbound_text("Any meetings?", "SMS"))

        assert reply == ERROR_MESSAGE

    @patch("app.agents.inbound.get_assistant")
    @patch("app.agents.inbound.is_authenticated", return_value=True)
    def test_unexpected_error_returns_apology(self, mock_auth, mock_get_assistant):
        mock_get_assistant.return_value = _assistant(error=KeyError("boom"))

        reply = asyncio.run(handle_inbound_text("Any meetings?", "Telegram"))

        assert reply == ERROR_MESSAGE
