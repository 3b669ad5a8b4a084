"""
backend/matchdesk/workers/match_sync.py

Purpose:
    Scheduled poll that reconciles today's Flashscore fixtures into the store.
    Shares the service singleton, so it waits on the same per-day lock as
    operator-triggered syncs.

Dependencies:
    - matchdesk.services.match_sync_service
"""

import logging

from matchdesk.services.match_sync_service import match_sync_service
from matchdesk.utils import local_today

logger = logging.getLogger("matchdesk.worker.match_sync")


async def sync_today() -> None:
    today = local_today()
    if match_sync_service.is_syncing(today):
        logger.info("Skipping scheduled sync for %s: a sync is already running", today.isoformat())
        return
    result = await match_sync_service.sync_day(today)
    if not result["success"]:
        logger.warning("Scheduled sync for %s failed: %s", today.isoformat(), result["error"])
