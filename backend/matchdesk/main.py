"""
backend/matchdesk/main.py

Purpose:
    FastAPI application bootstrap: logging, store connection, optional
    scheduled sync of today's fixtures, CORS and router wiring.

Dependencies:
    - matchdesk.database
    - matchdesk.workers.match_sync
"""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matchdesk.config import settings
from matchdesk.database import close_db, connect_db
from matchdesk.middleware.logging import StructuredLoggingMiddleware, setup_logging
from matchdesk.providers.flashscore import flashscore_provider
from matchdesk.routers.matches import router as matches_router
from matchdesk.workers.match_sync import sync_today

logger = logging.getLogger("matchdesk")
scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_db()

    if settings.SYNC_SCHEDULER_ENABLED:
        scheduler.add_job(
            sync_today,
            "interval",
            id="match_sync_today",
            minutes=settings.SYNC_INTERVAL_MINUTES,
            replace_existing=True,
            max_instances=1,
        )
        scheduler.start()
        logger.info("Scheduled sync every %d minutes", settings.SYNC_INTERVAL_MINUTES)
    else:
        logger.info("Scheduled sync disabled via config")

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    await flashscore_provider.aclose()
    await close_db()


app = FastAPI(
    title="Match Desk API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)
app.add_middleware(StructuredLoggingMiddleware)

app.include_router(matches_router)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "feed_circuit_open": flashscore_provider.circuit_open,
        "feed_cache": flashscore_provider.cache.stats(),
    }
