"""
backend/matchdesk/models/match.py

Purpose:
    Persisted match/team document projections and admin API payloads. Display
    rows (`MatchView`) cover both stored matches and provider-only matches
    that have not been imported yet.

Dependencies:
    - pydantic
    - matchdesk.utils
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from matchdesk.models.feed import MatchStatus
from matchdesk.utils import ensure_utc


class TeamRef(BaseModel):
    id: str
    name: str
    logo_url: str = ""


class MatchView(BaseModel):
    """One row of the day view.

    ``start_time`` is an ISO string: UTC with offset for stored rows, local
    wall-clock ``YYYY-MM-DDTHH:MM:00`` for provider rows.
    """
    id: str
    home_team_id: str
    away_team_id: str
    home_team: Optional[TeamRef] = None
    away_team: Optional[TeamRef] = None
    home_score: int = 0
    away_score: int = 0
    status: MatchStatus = MatchStatus.upcoming
    minute: Optional[int] = None
    competition: str = ""
    start_time: str
    stream_url: Optional[str] = None
    venue: Optional[str] = None
    is_api_match: bool = False

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


def team_to_ref(doc: dict | None) -> TeamRef | None:
    if not doc:
        return None
    return TeamRef(id=str(doc["_id"]), name=doc.get("name", ""), logo_url=doc.get("logo_url") or "")


def db_to_view(doc: dict, teams_by_id: dict) -> MatchView:
    """Convert a MongoDB match document (plus a team lookup) to a display row."""
    return MatchView(
        id=str(doc["_id"]),
        home_team_id=str(doc.get("home_team_id") or ""),
        away_team_id=str(doc.get("away_team_id") or ""),
        home_team=team_to_ref(teams_by_id.get(doc.get("home_team_id"))),
        away_team=team_to_ref(teams_by_id.get(doc.get("away_team_id"))),
        home_score=doc.get("home_score") or 0,
        away_score=doc.get("away_score") or 0,
        status=doc.get("status") or MatchStatus.upcoming,
        minute=doc.get("minute"),
        competition=doc.get("competition") or "",
        start_time=ensure_utc(doc["start_time"]).isoformat(),
        stream_url=doc.get("stream_url"),
        venue=doc.get("venue"),
    )


class MatchWrite(BaseModel):
    """Manual create payload from the admin form."""
    home_team_id: str
    away_team_id: str
    home_score: int = 0
    away_score: int = 0
    status: MatchStatus = MatchStatus.upcoming
    minute: Optional[int] = None
    competition: str = ""
    start_time: datetime
    stream_url: Optional[str] = None
    venue: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class MatchPatch(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: Optional[MatchStatus] = None
    minute: Optional[int] = None
    competition: Optional[str] = None
    start_time: Optional[datetime] = None
    stream_url: Optional[str] = None
    venue: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class ImportMatchRequest(BaseModel):
    row: MatchView
    overrides: Optional[MatchPatch] = None


class DashboardStats(BaseModel):
    live_matches: int
    active_streams: int
    total_teams: int
