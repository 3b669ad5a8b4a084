"""
backend/matchdesk/services/match_sync_service.py

Purpose:
    Reconcile one day of Flashscore fixtures into the `teams` and `matches`
    collections. Teams are looked up or created by name, matches are updated
    in place when the heuristic identity finds a stored row, otherwise
    inserted. Syncs for the same day are serialized by a per-day lock.

Dependencies:
    - matchdesk.providers.flashscore
    - matchdesk.services.team_service
    - matchdesk.services.match_identity
    - matchdesk.database
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Literal, TypedDict

from pymongo.errors import PyMongoError

import matchdesk.database as _db
from matchdesk.errors import FeedUnavailable, PersistenceFailure
from matchdesk.models.feed import Match
from matchdesk.providers.flashscore import FlashscoreProvider, flashscore_provider
from matchdesk.services.feed_normalizer import is_placeholder_team
from matchdesk.services.match_identity import DayPairIdentity, match_identity
from matchdesk.services.team_service import resolve_team_id
from matchdesk.utils import coerce_day, local_day_bounds, utcnow

logger = logging.getLogger("matchdesk.match_sync")


class SyncResult(TypedDict):
    success: bool
    date: str
    count: int
    created: int
    updated: int
    skipped: int
    failed: int
    ambiguous: int
    error: str | None


def _empty_result(day: date) -> SyncResult:
    return {
        "success": True,
        "date": day.isoformat(),
        "count": 0,
        "created": 0,
        "updated": 0,
        "skipped": 0,
        "failed": 0,
        "ambiguous": 0,
        "error": None,
    }


class MatchSyncService:
    def __init__(
        self,
        provider: FlashscoreProvider | None = None,
        identity: DayPairIdentity | None = None,
    ):
        self._provider = provider or flashscore_provider
        self._identity = identity or match_identity
        self._day_locks: dict[date, asyncio.Lock] = {}
        self._lock_users: dict[date, int] = {}

    def is_syncing(self, day: str | date) -> bool:
        lock = self._day_locks.get(coerce_day(day))
        return bool(lock and lock.locked())

    async def sync_day(self, day: str | date, *, today: date | None = None) -> SyncResult:
        target = coerce_day(day)
        lock = self._day_locks.setdefault(target, asyncio.Lock())
        self._lock_users[target] = self._lock_users.get(target, 0) + 1
        if lock.locked():
            logger.info("Sync for %s already running, waiting for it", target.isoformat())
        try:
            async with lock:
                return await self._sync_locked(target, today)
        finally:
            self._lock_users[target] -= 1
            if not self._lock_users[target]:
                # Last holder or waiter for this day.
                del self._lock_users[target]
                del self._day_locks[target]

    async def _sync_locked(self, target: date, today: date | None) -> SyncResult:
        result = _empty_result(target)
        try:
            groups = await self._provider.matches_for_date(target, today=today)
        except FeedUnavailable as exc:
            logger.error("Sync for %s aborted: %s", target.isoformat(), exc)
            result["success"] = False
            result["error"] = str(exc)
            return result

        fallback_start, _ = local_day_bounds(target)
        for group in groups:
            for match in group.matches:
                if is_placeholder_team(match.home_team) or is_placeholder_team(match.away_team):
                    result["skipped"] += 1
                    logger.debug("Skipping match %s with missing team data", match.id)
                    continue
                try:
                    action = await self._reconcile_match(match, match.kickoff_at or fallback_start, result)
                except PersistenceFailure as exc:
                    result["failed"] += 1
                    logger.error("Sync %s: match %s skipped: %s", target.isoformat(), match.id, exc)
                    continue
                result[action] += 1
                result["count"] += 1

        logger.info(
            "Sync %s: %d processed (%d created, %d updated, %d skipped, %d failed)",
            target.isoformat(), result["count"], result["created"], result["updated"],
            result["skipped"], result["failed"],
        )
        return result

    async def _reconcile_match(
        self, match: Match, start_time: datetime, result: SyncResult
    ) -> Literal["created", "updated"]:
        home_id = await resolve_team_id(match.home_team.name, match.home_team.logo)
        away_id = await resolve_team_id(match.away_team.name, match.away_team.logo)

        fields: dict[str, Any] = {
            "home_team_id": home_id,
            "away_team_id": away_id,
            "home_score": match.home_score if match.home_score is not None else 0,
            "away_score": match.away_score if match.away_score is not None else 0,
            "status": match.status,
            "minute": match.minute,
            "competition": match.competition,
            "start_time": start_time,
            "updated_at": utcnow(),
        }
        if match.venue:
            fields["venue"] = match.venue

        try:
            candidates = await (
                _db.db.matches.find(self._identity.store_query(home_id, away_id, start_time), {"_id": 1})
                .sort([("start_time", 1), ("_id", 1)])
                .limit(2)
                .to_list(length=2)
            )
            if len(candidates) > 1:
                result["ambiguous"] += 1
                logger.warning(
                    "Ambiguous identity %s: %s; updating the first",
                    self._identity.key(home_id, away_id, start_time),
                    [str(c["_id"]) for c in candidates],
                )

            if candidates:
                await _db.db.matches.update_one({"_id": candidates[0]["_id"]}, {"$set": fields})
                return "updated"

            await _db.db.matches.insert_one(
                {**fields, "stream_url": None, "venue": match.venue, "created_at": fields["updated_at"]}
            )
            return "created"
        except PyMongoError as exc:
            raise PersistenceFailure(f"match {match.id}: {exc}") from exc


# Singleton
match_sync_service = MatchSyncService()
