"""
backend/matchdesk/services/match_admin_service.py

Purpose:
    Operator-driven match writes: manual create/update/delete, importing a
    provider-only day-view row into the store, and dashboard counters.
    Deletion only ever happens here.

Dependencies:
    - matchdesk.database
    - matchdesk.services.team_service
    - bson.ObjectId
"""

import logging
from datetime import date
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

import matchdesk.database as _db
from matchdesk.models.feed import MatchStatus
from matchdesk.models.match import DashboardStats, MatchPatch, MatchView, MatchWrite
from matchdesk.services.team_service import resolve_team_id
from matchdesk.utils import local_day_bounds, local_to_utc, local_today, utcnow

logger = logging.getLogger("matchdesk.match_admin")


def parse_object_id(value: str) -> ObjectId:
    """Raise ValueError for anything that is not a valid ObjectId string."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise ValueError(f"invalid id: {value!r}") from exc


async def create_match(payload: MatchWrite) -> ObjectId:
    now = utcnow()
    doc: dict[str, Any] = payload.model_dump()
    doc["home_team_id"] = parse_object_id(payload.home_team_id)
    doc["away_team_id"] = parse_object_id(payload.away_team_id)
    doc["start_time"] = local_to_utc(payload.start_time)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = await _db.db.matches.insert_one(doc)
    logger.info("Created match %s manually", result.inserted_id)
    return result.inserted_id


async def update_match(match_id: str, patch: MatchPatch) -> bool:
    """Apply the fields set on `patch`. Returns False when the match does not exist."""
    fields = patch.model_dump(exclude_unset=True)
    if fields.get("start_time") is not None:
        fields["start_time"] = local_to_utc(fields["start_time"])
    else:
        fields.pop("start_time", None)
    fields["updated_at"] = utcnow()
    result = await _db.db.matches.update_one({"_id": parse_object_id(match_id)}, {"$set": fields})
    return result.matched_count > 0


async def delete_match(match_id: str) -> bool:
    result = await _db.db.matches.delete_one({"_id": parse_object_id(match_id)})
    if result.deleted_count:
        logger.info("Deleted match %s", match_id)
    return result.deleted_count > 0


async def import_provider_match(row: MatchView, overrides: MatchPatch | None = None) -> ObjectId:
    """Persist a provider-only day-view row, creating its teams by name if needed."""
    if not row.is_api_match:
        raise ValueError(f"match {row.id} is already stored")
    if not row.home_team or not row.away_team:
        raise ValueError(f"match {row.id} has no team names to import")

    home_id = await resolve_team_id(row.home_team.name, row.home_team.logo_url)
    away_id = await resolve_team_id(row.away_team.name, row.away_team.logo_url)

    now = utcnow()
    doc: dict[str, Any] = {
        "home_team_id": home_id,
        "away_team_id": away_id,
        "home_score": row.home_score,
        "away_score": row.away_score,
        "status": row.status,
        "minute": row.minute,
        "competition": row.competition,
        "start_time": local_to_utc(row.start_time),
        "stream_url": row.stream_url,
        "venue": row.venue,
    }
    if overrides is not None:
        patch = overrides.model_dump(exclude_unset=True)
        if patch.get("start_time") is not None:
            patch["start_time"] = local_to_utc(patch["start_time"])
        else:
            patch.pop("start_time", None)
        doc.update(patch)
    doc["created_at"] = now
    doc["updated_at"] = now

    result = await _db.db.matches.insert_one(doc)
    logger.info("Imported provider match %s as %s", row.id, result.inserted_id)
    return result.inserted_id


async def dashboard_stats(today: date | None = None) -> DashboardStats:
    """Live matches, today's matches carrying a stream URL, and team count."""
    day_start, day_end = local_day_bounds(today or local_today())
    live = await _db.db.matches.count_documents({"status": MatchStatus.live.value})
    streams = await _db.db.matches.count_documents(
        {
            "stream_url": {"$nin": [None, ""]},
            "start_time": {"$gte": day_start, "$lt": day_end},
        }
    )
    teams = await _db.db.teams.count_documents({})
    return DashboardStats(live_matches=live, active_streams=streams, total_teams=teams)
