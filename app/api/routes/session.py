from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.security import SESSION_KEY_SITE_AUTH, verify_site_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


class LoginRequest(BaseModel):
    password: str


@router.post("/login")
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """
    Unlock the dashboard API for this browser session.
    """
    if not verify_site_password(body.password):
        logger.warning("[session] Invalid site password")
        return JSONResponse({"success": False, "error": "Invalid password"}, status_code=401)

    request.session[SESSION_KEY_SITE_AUTH] = True
    return JSONResponse({"success": True})


@router.post("/logout")
async def logout(request: Request) -> JSONResponse:
    request.session.clear()
    return JSONResponse({"success": True})
