"""
DinoBot - Main Application Entry Point

Serves the GroupMe bot callbacks and the feed bot registration API.
The feed relay job runs separately (python -m dinobot.cli.run_feed_relay).
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
from dinobot.api import webhooks, registrations
from dinobot.config import settings
from dinobot.core.log_filters import configure_logging
from dinobot.db import init_db, close_db
from dinobot.version import __version__
import logging

configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup, close it on shutdown"""
    logger.info(f"🦕 Starting DinoBot {__version__} ({settings.environment})")

    await init_db()

    if not settings.groupme_oauth_url:
        logger.warning("⚠️  GROUPME_OAUTH_URL not set - /api/v1/login is disabled")

    logger.info("🔗 Webhook endpoint: /webhooks/dino/{bot_id}")

    yield

    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title="DinoBot",
    description="GroupMe bot that replies with dinosaurs, plus a Twitter feed relay",
    version=__version__,
    lifespan=lifespan,
)

# GroupMe bot callbacks
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

# Feed bot registration
app.include_router(registrations.router, prefix="/api/v1", tags=["registrations"])


@app.get("/")
async def root():
    return {
        "app": "DinoBot",
        "version": __version__,
        "environment": settings.environment,
        "webhook_url": "/webhooks/dino/{bot_id}"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
