from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.agents.inbound import handle_inbound_text
from app.core.config import settings
from app.services.sms import SmsChannel, twiml_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sms", tags=["sms"])

UNAUTHORIZED_NUMBER_MESSAGE = "Unauthorized number."


def _twiml(message: str, status_code: int = 200) -> Response:
    return Response(content=twiml_response(message), media_type="text/xml", status_code=status_code)


@router.post("/webhook")
async def sms_webhook(request: Request) -> Response:
    """
    Twilio inbound SMS webhook; the reply travels back as TwiML.
    """
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    incoming = params.get("Body", "")
    from_number = params.get("From", "")

    if settings.TWILIO_VALIDATE_SIGNATURE:
        signature = request.headers.get("X-Twilio-Signature", "")
        if not SmsChannel().validate_request(settings.sms_webhook_url, params, signature):
            logger.warning(f"[sms] Rejected webhook with invalid signature from {from_number}")
            return Response(status_code=403)

    logger.info(f"[sms] Received SMS from {from_number}: {incoming}")

    reply = await handle_inbound_text(
        incoming,
        channel="SMS",
        sender=from_number,
        allowed_sender=settings.USER_PHONE_NUMBER or None,
        unauthorized_reply=UNAUTHORIZED_NUMBER_MESSAGE,
    )
    return _twiml(reply)


@router.post("/status")
async def sms_status(request: Request) -> Response:
    """
    Delivery receipt callback.
    """
    form = await request.form()
    logger.info(f"[sms] Message {form.get('MessageSid')} status: {form.get('MessageStatus')}")
    return Response(status_code=200)
