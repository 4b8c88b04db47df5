# backend/parkito/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .core.redis import close_redis_client
from .errors import register_error_handlers
from .routes import availability, health, parking_calendar

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{BRAND_NAME} host dashboard API starting")
    if not settings.redis_url:
        logger.warning("REDIS_URL not set: availability drafts are kept in process memory")
    yield
    try:
        close_redis_client()
    except Exception as e:
        logger.error(f"[REDIS-DRAFTS] Error closing Redis client: {e}")
    logger.info(f"{BRAND_NAME} host dashboard API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(availability.router)
    app.include_router(parking_calendar.router)
    return app


app = create_app()
