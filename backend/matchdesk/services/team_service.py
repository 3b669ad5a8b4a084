"""
backend/matchdesk/services/team_service.py

Purpose:
    Team lookup-or-create keyed by exact name. Existing teams are reused as-is
    (their logo is never refreshed from the feed).

Dependencies:
    - matchdesk.database
    - pymongo
"""

import logging

from pymongo.errors import DuplicateKeyError, PyMongoError

import matchdesk.database as _db
from matchdesk.errors import PersistenceFailure
from matchdesk.utils import utcnow

logger = logging.getLogger("matchdesk.team_service")


async def resolve_team_id(name: str, logo: str = ""):
    """Return the id of the team called `name`, inserting it if missing.

    Raises PersistenceFailure when the store rejects the lookup or insert.
    """
    try:
        existing = await _db.db.teams.find_one({"name": name}, {"_id": 1})
        if existing:
            return existing["_id"]

        try:
            result = await _db.db.teams.insert_one(
                {"name": name, "logo_url": logo or "", "created_at": utcnow()}
            )
        except DuplicateKeyError:
            # Another sync inserted it between our lookup and insert.
            existing = await _db.db.teams.find_one({"name": name}, {"_id": 1})
            if not existing:
                raise
            logger.debug("Race resolved: team '%s' created concurrently -> %s", name, existing["_id"])
            return existing["_id"]
    except PyMongoError as exc:
        raise PersistenceFailure(f"team '{name}': {exc}") from exc

    logger.info("Created team '%s' -> %s", name, result.inserted_id)
    return result.inserted_id


async def teams_by_id(team_ids) -> dict:
    ids = [t for t in {*team_ids} if t is not None]
    if not ids:
        return {}
    docs = await _db.db.teams.find({"_id": {"$in": ids}}).to_list(length=len(ids))
    return {doc["_id"]: doc for doc in docs}
