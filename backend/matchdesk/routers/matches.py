"""
backend/matchdesk/routers/matches.py

Purpose:
    Match desk API used by the admin UI: deduplicated day view, live feed,
    day sync, dashboard counters and manual match edits.

Dependencies:
    - matchdesk.services.match_view_service
    - matchdesk.services.match_sync_service
    - matchdesk.services.match_admin_service
    - matchdesk.providers.flashscore
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from matchdesk.errors import PersistenceFailure
from matchdesk.models.feed import LeagueGroup, MatchStatus
from matchdesk.models.match import DashboardStats, ImportMatchRequest, MatchPatch, MatchView, MatchWrite
from matchdesk.providers.flashscore import flashscore_provider
from matchdesk.services import match_admin_service
from matchdesk.services.match_sync_service import match_sync_service
from matchdesk.services.match_view_service import filter_for_day, match_view_service, split_by_status
from matchdesk.utils import coerce_day

logger = logging.getLogger("matchdesk.matches")

router = APIRouter(prefix="/api/matches", tags=["matches"])


def _day_or_400(day: str):
    try:
        return coerce_day(day)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date '{day}', expected YYYY-MM-DD.")


@router.get("/day/{day}", response_model=list[MatchView])
async def matches_for_day(
    day: str,
    status_filter: Optional[MatchStatus] = Query(None, alias="status"),
    same_day_only: bool = Query(True, description="Drop stored rows from other days"),
):
    """Stored matches plus provider matches not yet stored."""
    target = _day_or_400(day)
    rows = await match_view_service.view_for_day(target)
    if same_day_only:
        rows = filter_for_day(rows, target)
    if status_filter:
        rows = [r for r in rows if r.status == status_filter.value]
    return rows


@router.get("/day/{day}/grouped", response_model=dict[str, list[MatchView]])
async def matches_for_day_grouped(
    day: str,
    same_day_only: bool = Query(True, description="Drop stored rows from other days"),
):
    """The day view bucketed into upcoming / live / finished for the dashboard columns."""
    target = _day_or_400(day)
    rows = await match_view_service.view_for_day(target)
    if same_day_only:
        rows = filter_for_day(rows, target)
    return split_by_status(rows)


@router.get("/live-feed", response_model=list[LeagueGroup])
async def live_feed():
    return await flashscore_provider.live_matches()


@router.post("/sync/{day}")
async def sync_day(day: str):
    result = await match_sync_service.sync_day(_day_or_400(day))
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result)
    return result


@router.get("/stats", response_model=DashboardStats)
async def stats():
    return await match_admin_service.dashboard_stats()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_match(payload: MatchWrite):
    try:
        match_id = await match_admin_service.create_match(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"id": str(match_id)}


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_match(body: ImportMatchRequest):
    try:
        match_id = await match_admin_service.import_provider_match(body.row, body.overrides)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PersistenceFailure as exc:
        logger.error("Import of provider match %s failed: %s", body.row.id, exc)
        raise HTTPException(status_code=500, detail="Could not create teams for this match.")
    return {"id": str(match_id)}


@router.put("/{match_id}")
async def update_match(match_id: str, patch: MatchPatch):
    try:
        found = await match_admin_service.update_match(match_id, patch)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not found:
        raise HTTPException(status_code=404, detail="Match not found.")
    return {"id": match_id}


@router.delete("/{match_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_match(match_id: str):
    try:
        deleted = await match_admin_service.delete_match(match_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail="Match not found.")
