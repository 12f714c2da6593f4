from __future__ import annotations

import asyncio
import logging
from typing import Any

from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

from app.core.config import settings
from app.services.channels import NotificationError, split_message

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 1600
# Room for the "(i/n) " prefix on split messages
PART_PREFIX_RESERVE = 20


def sms_parts(message: str) -> list[str]:
    """Message bodies to send, with "(i/n) " prefixes when split."""
    if len(message) <= MAX_SMS_LENGTH:
        return [message]
    parts = split_message(message, MAX_SMS_LENGTH - PART_PREFIX_RESERVE)
    if len(parts) == 1:
        return parts
    return [f"({i}/{len(parts)}) {part}" for i, part in enumerate(parts, 1)]


def twiml_response(message: str) -> str:
    """Render the TwiML document that replies to an inbound SMS."""
    response = MessagingResponse()
    response.message(message)
    return str(response)


class SmsChannel:
    name = "sms"

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        user_number: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
        self._auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
        self._from_number = from_number if from_number is not None else settings.TWILIO_PHONE_NUMBER
        self._user_number = user_number if user_number is not None else settings.USER_PHONE_NUMBER
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._from_number and self._user_number)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = Client(self._account_sid, self._auth_token)
        return self._client

    def _send_sync(self, to: str, message: str) -> list[str]:
        parts = sms_parts(message)
        sids = []
        for index, body in enumerate(parts, 1):
            result = self.client.messages.create(body=body, from_=self._from_number, to=to)
            sids.append(result.sid)
            if len(parts) > 1:
                logger.info(f"[sms] Part {index}/{len(parts)} sent. SID: {result.sid}")
            else:
                logger.info(f"[sms] SMS sent successfully. SID: {result.sid}")
        return sids

    async def send_sms(self, to: str, message: str) -> list[str]:
        try:
            return await asyncio.to_thread(self._send_sync, to, message)
        except TwilioException as e:
            logger.error(f"[sms] Twilio SMS error: {e}")
            raise NotificationError(f"Failed to send SMS: {e}") from e

    async def send_to_user(self, message: str) -> list[str]:
        if not self._user_number:
            raise NotificationError("User phone number not configured")
        return await self.send_sms(self._user_number, message)

    def validate_request(self, url: str, params: dict[str, Any], signature: str) -> bool:
        """Check the X-Twilio-Signature header of a webhook request."""
        validator = RequestValidator(self._auth_token)
        return validator.validate(url, params, signature)
