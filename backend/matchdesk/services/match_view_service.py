"""
backend/matchdesk/services/match_view_service.py

Purpose:
    Build the day view: every stored match plus provider matches for the
    requested day that do not already appear in the store. A provider row is
    considered stored when a stored match has the same lowercased home team
    name on the same local calendar day.

Dependencies:
    - matchdesk.providers.flashscore
    - matchdesk.services.match_identity
    - matchdesk.services.team_service
    - matchdesk.database
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import matchdesk.database as _db
from matchdesk.errors import FeedUnavailable
from matchdesk.models.feed import LeagueGroup, Match, MatchStatus
from matchdesk.models.match import MatchView, TeamRef, db_to_view
from matchdesk.providers.flashscore import FlashscoreProvider, flashscore_provider
from matchdesk.services.match_identity import DayPairIdentity, match_identity
from matchdesk.services.team_service import teams_by_id
from matchdesk.utils import coerce_day, local_date_of, parse_utc

logger = logging.getLogger("matchdesk.match_view")


def provider_to_view(match: Match, day: date) -> MatchView:
    """Project a normalized provider match onto a display row for `day`."""
    hhmm = match.start_time or "00:00"
    return MatchView(
        id=match.id,
        home_team_id=match.home_team.id,
        away_team_id=match.away_team.id,
        home_team=TeamRef(id=match.home_team.id, name=match.home_team.name, logo_url=match.home_team.logo),
        away_team=TeamRef(id=match.away_team.id, name=match.away_team.name, logo_url=match.away_team.logo),
        home_score=match.home_score or 0,
        away_score=match.away_score or 0,
        status=match.status,
        minute=match.minute,
        competition=match.competition,
        start_time=f"{day.isoformat()}T{hhmm}:00",
        venue=match.venue,
        is_api_match=True,
    )


def filter_for_day(rows: list[MatchView], day: str | date) -> list[MatchView]:
    target = coerce_day(day)
    return [r for r in rows if local_date_of(parse_utc(r.start_time)) == target]


def split_by_status(rows: list[MatchView]) -> dict[str, list[MatchView]]:
    buckets: dict[str, list[MatchView]] = {s.value: [] for s in MatchStatus}
    for row in rows:
        buckets.setdefault(row.status, []).append(row)
    return buckets


class MatchViewService:
    def __init__(
        self,
        provider: FlashscoreProvider | None = None,
        identity: DayPairIdentity | None = None,
    ):
        self._provider = provider or flashscore_provider
        self._identity = identity or match_identity

    async def stored_matches(self) -> list[MatchView]:
        docs = await _db.db.matches.find({}).sort("start_time", -1).to_list(length=None)
        team_ids = [d.get("home_team_id") for d in docs] + [d.get("away_team_id") for d in docs]
        teams = await teams_by_id(team_ids)
        return [db_to_view(doc, teams) for doc in docs]

    async def _provider_groups(self, day: date) -> list[LeagueGroup]:
        try:
            return await self._provider.matches_for_date(day)
        except FeedUnavailable as exc:
            # The day view stays usable with stored rows only.
            logger.error("Provider matches for %s unavailable: %s", day.isoformat(), exc)
            return []

    async def view_for_day(self, day: str | date) -> list[MatchView]:
        """Stored rows (all dates) followed by provider rows not already stored.

        Callers filter the combined list to the day with `filter_for_day`.
        """
        target = coerce_day(day)
        stored, groups = await asyncio.gather(self.stored_matches(), self._provider_groups(target))

        suppressed = {
            self._identity.display_key(
                row.home_team.name if row.home_team else None,
                local_date_of(parse_utc(row.start_time)),
            )
            for row in stored
        }

        fresh: list[MatchView] = []
        for group in groups:
            for match in group.matches:
                if self._identity.display_key(match.home_team.name, target) in suppressed:
                    continue
                fresh.append(provider_to_view(match, target))

        logger.debug(
            "Day view %s: %d stored, %d provider-only",
            target.isoformat(), len(stored), len(fresh),
        )
        return stored + fresh


# Singleton
match_view_service = MatchViewService()
