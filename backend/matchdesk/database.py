"""
backend/matchdesk/database.py

Purpose:
    MongoDB connection bootstrap and index management for the `teams` and
    `matches` collections.

Dependencies:
    - motor.motor_asyncio
    - pymongo
    - matchdesk.config
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, OperationFailure

from matchdesk.config import settings

client: AsyncIOMotorClient = None
db: AsyncIOMotorDatabase = None

logger = logging.getLogger("matchdesk.database")


async def connect_db() -> None:
    global client, db
    client = AsyncIOMotorClient(
        settings.MONGO_URI,
        maxPoolSize=25,
        minPoolSize=1,
    )
    db = client[settings.MONGO_DB]
    await _ensure_indexes()


async def close_db() -> None:
    global client
    if client:
        client.close()


async def _ensure_indexes() -> None:
    """Create indexes on startup. Idempotent."""

    # ---- Teams ----
    # Name is the only natural key the feed gives us; the unique index turns a
    # lost lookup-or-create race into a DuplicateKeyError instead of a twin row.
    try:
        await db.teams.create_index("name", unique=True)
    except (DuplicateKeyError, OperationFailure) as exc:
        logger.warning("Skipped unique teams.name index due to duplicate data: %s", exc)
        await db.teams.create_index("name", name="team_name_lookup", unique=False)

    # ---- Matches ----
    # Heuristic identity lookup: team pair + start_time range.
    await db.matches.create_index(
        [("home_team_id", 1), ("away_team_id", 1), ("start_time", 1)]
    )
    await db.matches.create_index([("start_time", -1)])
    await db.matches.create_index([("status", 1), ("start_time", 1)])
