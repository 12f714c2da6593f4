from __future__ import annotations

from fastapi import APIRouter

from app.api.routes import assistant, auth, session

api_router = APIRouter()

api_router.include_router(assistant.router)
api_router.include_router(auth.router)
api_router.include_router(session.router)
