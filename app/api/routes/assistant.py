from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.agents.assistant import get_assistant
from app.agents.inbound import ERROR_MESSAGE
from app.core.google_tools import get_account, is_authenticated
from app.core.security import require_site_session
from app.services.notifier import get_notifier
from app.services.scheduler import get_scheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assistant"], dependencies=[Depends(require_site_session)])

TEST_NOTIFICATION = "🔔 Test notification from your inbox assistant. Messaging is working!"


@router.get("/status")
async def status():
    """
    Connection state for the dashboard.
    """
    scheduler = get_scheduler()
    return {
        "googleAuthenticated": is_authenticated(),
        "account": get_account(),
        "schedulerRunning": scheduler.running,
        "serverTime": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/test-notification")
async def test_notification():
    delivered = await get_notifier().send(TEST_NOTIFICATION)
    if not delivered:
        return JSONResponse(
            {"success": False, "error": "No notification channel delivered the message"},
            status_code=502,
        )
    return {"success": True}


@router.get("/summary")
async def summary():
    """
    On-demand daily summary, the same text the morning digest would send.
    """
    if not is_authenticated():
        return JSONResponse({"error": "Google account not connected"}, status_code=400)

    try:
        text = await get_assistant().daily_summary()
    except Exception as e:
        logger.error(f"[api] Summary failed: {e}", exc_info=True)
        return JSONResponse({"error": ERROR_MESSAGE}, status_code=500)

    return {"summary": text}


@router.get("/schedule")
async def schedule():
    scheduler = get_scheduler()
    return {
        "running": scheduler.running,
        "config": scheduler.config.model_dump(by_alias=True),
        "jobs": scheduler.jobs(),
    }


@router.post("/schedule/reload")
async def reload_schedule():
    scheduler = get_scheduler()
    scheduler.reload()
    return {
        "success": True,
        "running": scheduler.running,
        "jobs": scheduler.jobs(),
    }
