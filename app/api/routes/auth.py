from __future__ import annotations

import asyncio
import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.core.config import settings
from app.core.google_oauth import (
    SESSION_KEY_CODE_VERIFIER,
    SESSION_KEY_OAUTH_STATE,
    exchange_code_for_tokens,
    get_authorization_url,
    get_user_info,
)
from app.core.google_tools import clear_tokens, get_account, is_authenticated, save_tokens
from app.core.security import require_site_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _redirect_with_error(error: str, message: str | None = None) -> RedirectResponse:
    params = {"error": error}
    if message:
        params["message"] = message
    return RedirectResponse(url=f"{settings.APP_BASE_URL}/?{urlencode(params)}")


@router.get("/login", dependencies=[Depends(require_site_session)])
async def login(request: Request):
    """
    Initiate Google OAuth login flow for the single assistant account.
    """
    state = secrets.token_urlsafe(16)
    authorization_url, code_verifier = get_authorization_url(state)

    request.session[SESSION_KEY_OAUTH_STATE] = state
    if code_verifier:
        request.session[SESSION_KEY_CODE_VERIFIER] = code_verifier

    return RedirectResponse(url=authorization_url)


@router.get("/callback")
async def callback(request: Request):
    """
    Handle Google OAuth callback and persist the token record.
    """
    code = request.query_params.get("code")
    state = request.query_params.get("state")
    error = request.query_params.get("error")

    if error:
        logger.error(f"[auth] OAuth error: {error}")
        return _redirect_with_error(error)

    if not code:
        logger.error("[auth] No authorization code received")
        return _redirect_with_error("no_code")

    expected_state = request.session.pop(SESSION_KEY_OAUTH_STATE, None)
    if not expected_state or state != expected_state:
        logger.error("[auth] OAuth state mismatch")
        return _redirect_with_error("state_mismatch")

    code_verifier = request.session.pop(SESSION_KEY_CODE_VERIFIER, None)

    try:
        token_data = await asyncio.to_thread(exchange_code_for_tokens, code, state, code_verifier)
    except Exception as e:
        logger.exception(f"[auth] OAuth callback error: {e}")
        return _redirect_with_error("auth_failed", str(e))

    user_info = await get_user_info(token_data["access_token"])
    token_data["account"] = {
        "email": user_info.get("email"),
        "name": user_info.get("name"),
    } if user_info else None

    if not save_tokens(token_data):
        return _redirect_with_error("auth_failed", "Could not store credentials")

    logger.info(f"[auth] Google account connected: {(token_data['account'] or {}).get('email', 'unknown')}")
    return RedirectResponse(url=f"{settings.APP_BASE_URL}/")


@router.get("/signout", dependencies=[Depends(require_site_session)])
async def signout():
    """
    Disconnect the Google account by deleting the stored tokens.
    """
    clear_tokens()
    return RedirectResponse(url=f"{settings.APP_BASE_URL}/")


@router.get("/status", dependencies=[Depends(require_site_session)])
async def auth_status():
    """
    Check whether the Google account is connected.
    """
    return {
        "authenticated": is_authenticated(),
        "account": get_account(),
    }
