"""
backend/matchdesk/providers/flashscore.py

Purpose:
    Flashscore (RapidAPI) feed client: date-to-endpoint translation, cached
    fetches for date and live queries, and grouping of normalized matches by
    league.

Dependencies:
    - matchdesk.providers.http_client
    - matchdesk.services.response_cache
    - matchdesk.services.feed_normalizer
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import httpx

from matchdesk.config import settings
from matchdesk.errors import FeedUnavailable, MalformedRecord
from matchdesk.models.feed import League, LeagueGroup, Match, MatchStatus
from matchdesk.providers.http_client import ResilientClient, safe_url
from matchdesk.services.feed_normalizer import normalize_match
from matchdesk.services.response_cache import ResponseCache
from matchdesk.utils import coerce_day, local_today

logger = logging.getLogger("matchdesk.flashscore")

PROVIDER_NAME = "flashscore"
LIVE_CACHE_KEY = "live-matches-grouped"


@dataclass(frozen=True)
class FeedQuery:
    path: str
    params: dict[str, Any] = field(default_factory=dict)


def day_offset(target: date, today: date) -> int:
    # Both sides are calendar dates, so the difference is already midnight-aligned.
    return round((target - today).days)


def resolve_date_query(target: date, today: date | None = None) -> FeedQuery:
    """Pick the relative `list?day=` endpoint inside the window, `list-by-date` outside."""
    today = today or local_today()
    diff_days = day_offset(target, today)
    window = settings.FEED_RELATIVE_WINDOW_DAYS
    if -window <= diff_days <= window:
        return FeedQuery("matches/list", {"day": diff_days, "sport_id": settings.FEED_SPORT_ID})
    return FeedQuery(
        "matches/list-by-date",
        {"date": target.isoformat(), "sport_id": settings.FEED_SPORT_ID},
    )


def league_id_for(tournament: dict) -> str:
    url = tournament.get("tournament_url")
    if url:
        return str(url)
    return re.sub(r"\s+", "-", str(tournament.get("name") or "").lower())


def group_tournaments(
    tournaments: list,
    status_hint: MatchStatus | str,
    status_filter: MatchStatus | str | None = None,
) -> list[LeagueGroup]:
    """Normalize and group raw tournament blocks by league identity.

    Blocks without a usable `matches` list are skipped, single matches that
    fail to normalize are skipped, and leagues left empty are dropped.
    """
    wanted = MatchStatus(status_filter).value if status_filter else None
    groups: dict[str, LeagueGroup] = {}

    for tournament in tournaments:
        if not isinstance(tournament, dict):
            logger.warning("Skipping non-object tournament block: %r", type(tournament).__name__)
            continue
        raw_matches = tournament.get("matches")
        if not isinstance(raw_matches, list) or not raw_matches:
            continue

        name = str(tournament.get("name") or "")
        country = tournament.get("country_name") or ""
        matches: list[Match] = []
        for raw in raw_matches:
            try:
                match = normalize_match(raw, name, status_hint, country=country)
            except MalformedRecord as exc:
                logger.warning("Skipping malformed match in %s: %s", name or "?", exc)
                continue
            if wanted and match.status != wanted:
                continue
            matches.append(match)

        if not matches:
            continue

        league_id = league_id_for(tournament)
        existing = groups.get(league_id)
        if existing is not None:
            existing.matches.extend(matches)
            continue
        groups[league_id] = LeagueGroup(
            league=League(
                id=league_id,
                name=name,
                country=country,
                logo=tournament.get("image_path") or "",
                url=tournament.get("tournament_url") or "",
            ),
            matches=matches,
        )

    return list(groups.values())


class FlashscoreProvider:
    """Flashscore football feed via RapidAPI. One sport, three endpoints."""

    def __init__(
        self,
        client: Optional[ResilientClient] = None,
        cache: Optional[ResponseCache] = None,
    ):
        self._client = client or ResilientClient(
            PROVIDER_NAME,
            headers={
                "x-rapidapi-host": settings.FEED_API_HOST,
                "x-rapidapi-key": settings.FEED_API_KEY,
            },
            timeout=settings.FEED_TIMEOUT_SECONDS,
            max_retries=settings.FEED_MAX_RETRIES,
            base_delay=settings.FEED_BASE_DELAY_SECONDS,
        )
        self._cache = cache or ResponseCache(settings.RESPONSE_CACHE_RETENTION_SECONDS)

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def circuit_open(self) -> bool:
        return self._client.circuit.is_open

    async def _fetch(self, query: FeedQuery) -> list:
        """GET one endpoint and return the tournament list or raise FeedUnavailable."""
        url = f"{settings.FEED_BASE_URL.rstrip('/')}/{query.path}"
        if not self._client.circuit.can_attempt():
            raise FeedUnavailable(f"circuit open for {PROVIDER_NAME}")

        try:
            resp = await self._client.get(url, params=query.params)
        except httpx.HTTPError as exc:
            self._client.circuit.record_failure()
            raise FeedUnavailable(f"{safe_url(url)} unreachable: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            self._client.circuit.record_failure()
            raise FeedUnavailable(
                f"Flashscore API error: {resp.status_code} on {safe_url(url)}",
                status_code=resp.status_code,
            )
        self._client.circuit.record_success()

        try:
            data = resp.json()
        except ValueError as exc:
            raise FeedUnavailable(f"non-JSON body from {safe_url(url)}") from exc
        if not isinstance(data, list):
            raise FeedUnavailable(
                f"expected a tournament list from {safe_url(url)}, got {type(data).__name__}"
            )
        return data

    async def matches_for_date(
        self,
        day: str | date,
        status_filter: MatchStatus | str | None = None,
        *,
        today: date | None = None,
    ) -> list[LeagueGroup]:
        """Grouped matches for one calendar day. Raises FeedUnavailable on feed errors."""
        target = coerce_day(day)
        wanted = MatchStatus(status_filter).value if status_filter else None
        cache_key = f"matches-date-{target.isoformat()}-{wanted or 'all'}"
        ttl = (
            settings.FEED_LIVE_CACHE_TTL_SECONDS
            if wanted == MatchStatus.live.value
            else settings.FEED_DATE_CACHE_TTL_SECONDS
        )

        async def produce() -> list[LeagueGroup]:
            query = resolve_date_query(target, today)
            try:
                data = await self._fetch(query)
            except FeedUnavailable as exc:
                logger.error("Flashscore matches for %s failed: %s", target.isoformat(), exc)
                raise
            groups = group_tournaments(data, MatchStatus.upcoming, wanted)
            logger.info(
                "Flashscore: %d leagues / %d matches for %s via %s",
                len(groups), sum(len(g.matches) for g in groups), target.isoformat(), query.path,
            )
            return groups

        return await self._cache.get_or_fetch(cache_key, produce, ttl)

    async def live_matches(self) -> list[LeagueGroup]:
        """Grouped in-progress matches. Feed errors degrade to an empty list."""

        async def produce() -> list[LeagueGroup]:
            try:
                data = await self._fetch(FeedQuery("matches/live", {"sport_id": settings.FEED_SPORT_ID}))
            except FeedUnavailable as exc:
                logger.error("Flashscore live error: %s", exc)
                return []
            return group_tournaments(data, MatchStatus.live, MatchStatus.live)

        return await self._cache.get_or_fetch(
            LIVE_CACHE_KEY, produce, settings.FEED_LIVE_CACHE_TTL_SECONDS
        )

    async def aclose(self) -> None:
        await self._client.aclose()


# Singleton
flashscore_provider = FlashscoreProvider()
