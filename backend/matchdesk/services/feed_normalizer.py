"""
backend/matchdesk/services/feed_normalizer.py

Purpose:
    Map raw Flashscore match payloads to canonical Team/Match models and
    derive match status from the provider's boolean flags.

Status priority (first hit wins):
    is_finished -> finished
    is_in_progress -> live (minute from live_time)
    is_cancelled / is_postponed -> finished
    not is_started -> upcoming
    no flags at all -> caller's hint

Cancelled and postponed fixtures are reported as finished. That conflation is
kept until product decides on a separate status.

Dependencies:
    - matchdesk.models.feed
    - matchdesk.utils
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from matchdesk.errors import MalformedRecord
from matchdesk.models.feed import HalfScore, Match, MatchStatus, Team
from matchdesk.utils import local_hhmm

logger = logging.getLogger("matchdesk.feed_normalizer")

UNKNOWN_TEAM_NAME = "Unknown Team"
HALF_TIME_CLOCK = "Half Time"
HALF_TIME_MINUTE = 45

_STATUS_FLAGS = ("is_finished", "is_in_progress", "is_cancelled", "is_postponed", "is_started")
# Priority order; "smaill" is the provider's own spelling.
_LOGO_FIELDS = ("smaill_image_path", "small_image_path", "image_path")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_team(raw: Any, fallback_id: str) -> Team:
    if not raw:
        return Team(id=fallback_id or "unknown", name=UNKNOWN_TEAM_NAME, short_name="UNK", logo="")
    if not isinstance(raw, dict):
        raise MalformedRecord(f"team payload is {type(raw).__name__}, expected object")

    name = str(raw.get("name") or "Unknown")
    short_name = raw.get("short_name") or name[:3].upper() or "UNK"
    logo = next((raw[f] for f in _LOGO_FIELDS if raw.get(f)), "")
    return Team(id=str(raw.get("team_id") or fallback_id), name=name, short_name=short_name, logo=logo)


def is_placeholder_team(team: Team) -> bool:
    return team.name == UNKNOWN_TEAM_NAME and team.short_name == "UNK"


def parse_live_minute(live_time: Any) -> int | None:
    """`"Half Time"` -> 45, `"67"` -> 67, anything without a leading integer -> None."""
    if not live_time:
        return None
    text = str(live_time)
    if text == HALF_TIME_CLOCK:
        return HALF_TIME_MINUTE
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def derive_status(match_status: Any, hint: MatchStatus | str) -> tuple[str, int | None]:
    """Return (status, minute). Minute is only ever set for live matches."""
    hint_value = MatchStatus(hint).value
    if not isinstance(match_status, dict) or not any(f in match_status for f in _STATUS_FLAGS):
        return hint_value, None

    if match_status.get("is_finished"):
        return MatchStatus.finished.value, None
    if match_status.get("is_in_progress"):
        return MatchStatus.live.value, parse_live_minute(match_status.get("live_time"))
    if match_status.get("is_cancelled") or match_status.get("is_postponed"):
        return MatchStatus.finished.value, None
    if not match_status.get("is_started"):
        return MatchStatus.upcoming.value, None
    return hint_value, None


def _score(scores: dict, key: str) -> int | None:
    value = scores.get(key)
    return int(value) if value is not None else None


def _half(scores: dict, home_key: str, away_key: str) -> HalfScore | None:
    home, away = scores.get(home_key), scores.get(away_key)
    if home is None or away is None:
        return None
    return HalfScore(home=int(home), away=int(away))


def _optional_name(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("name")
    return str(value) if value else None


def normalize_match(
    raw: Any,
    competition: str,
    status_hint: MatchStatus | str,
    *,
    country: str | None = None,
) -> Match:
    if not isinstance(raw, dict):
        raise MalformedRecord(f"match payload is {type(raw).__name__}, expected object")

    match_id = str(raw.get("match_id") or "")
    home_raw = raw.get("home_team")
    away_raw = raw.get("away_team")
    home_id = home_raw.get("team_id") if isinstance(home_raw, dict) else None
    away_id = away_raw.get("team_id") if isinstance(away_raw, dict) else None
    home_team = normalize_team(home_raw, str(home_id or f"home-{match_id}"))
    away_team = normalize_team(away_raw, str(away_id or f"away-{match_id}"))

    status, minute = derive_status(raw.get("match_status"), status_hint)

    scores = raw.get("scores") or {}
    if not isinstance(scores, dict):
        raise MalformedRecord(f"scores for match {match_id!r} is not an object")

    start_time = None
    kickoff_at = None
    timestamp = raw.get("timestamp")
    if timestamp:
        try:
            kickoff_at = datetime.fromtimestamp(float(timestamp), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise MalformedRecord(f"bad timestamp {timestamp!r} for match {match_id!r}") from exc
        start_time = local_hhmm(float(timestamp))

    try:
        return Match(
            id=match_id,
            home_team=home_team,
            away_team=away_team,
            home_score=_score(scores, "home"),
            away_score=_score(scores, "away"),
            status=status,
            minute=minute,
            competition=competition or "",
            start_time=start_time,
            kickoff_at=kickoff_at,
            venue=_optional_name(raw.get("venue")),
            referee=_optional_name(raw.get("referee")),
            country=country or None,
            score_1st_half=_half(scores, "home_1st_half", "away_1st_half"),
            score_2nd_half=_half(scores, "home_2nd_half", "away_2nd_half"),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedRecord(f"match {match_id!r}: {exc}") from exc
