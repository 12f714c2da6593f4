from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.router import api_router
from app.api.routes import sms
from app.core.config import settings
from app.services.scheduler import get_scheduler
from app.services.telegram_bot import TelegramBotAdapter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}")

    scheduler = get_scheduler()
    scheduler.start()
    app.state.scheduler = scheduler

    telegram_bot = None
    if settings.TELEGRAM_BOT_TOKEN:
        telegram_bot = TelegramBotAdapter()
        try:
            await telegram_bot.start()
        except Exception as e:
            logger.warning(f"Failed to start Telegram bot: {e}")
            telegram_bot = None
    else:
        logger.info("Telegram bot not configured")
    app.state.telegram_bot = telegram_bot

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")

    scheduler.stop()
    if telegram_bot is not None:
        await telegram_bot.stop()


app = FastAPI(
    title=settings.APP_NAME,
    description="SMS and Telegram assistant for your Google mail and calendar",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_BASE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
)

app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(sms.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "app": settings.APP_NAME}
