from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request

from app.core.config import settings

logger = logging.getLogger(__name__)

SESSION_KEY_SITE_AUTH = "site_authenticated"


def verify_site_password(password: str | None) -> bool:
    if not settings.SITE_PASSWORD:
        return True
    return hmac.compare_digest((password or "").encode(), settings.SITE_PASSWORD.encode())


def require_site_session(request: Request) -> None:
    """Dependency guarding the dashboard API; open when no SITE_PASSWORD is set."""
    if not settings.SITE_PASSWORD:
        return
    if request.session.get(SESSION_KEY_SITE_AUTH):
        return
    raise HTTPException(status_code=401, detail="Not authenticated")
