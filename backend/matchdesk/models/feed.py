"""
backend/matchdesk/models/feed.py

Purpose:
    Canonical Team/Match/League shapes produced by the feed normalizer.
    Provider-agnostic on purpose: nothing here knows Flashscore field names.

Dependencies:
    - pydantic
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchStatus(str, Enum):
    upcoming = "upcoming"
    live = "live"
    finished = "finished"


class Team(BaseModel):
    id: str
    name: str
    logo: str = ""
    short_name: Optional[str] = None


class HalfScore(BaseModel):
    home: int
    away: int


class Match(BaseModel):
    """Normalized fixture.

    Scores stay ``None`` until reported. ``start_time`` is the local ``HH:MM``
    kickoff; ``kickoff_at`` keeps the absolute instant for persistence.
    """
    id: str
    home_team: Team
    away_team: Team
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: MatchStatus = MatchStatus.upcoming
    minute: Optional[int] = None
    competition: str = ""
    start_time: Optional[str] = None
    kickoff_at: Optional[datetime] = Field(default=None, exclude=True)
    stream_url: Optional[str] = None
    venue: Optional[str] = None
    referee: Optional[str] = None
    country: Optional[str] = None
    score_1st_half: Optional[HalfScore] = None
    score_2nd_half: Optional[HalfScore] = None

    model_config = ConfigDict(use_enum_values=True)


class League(BaseModel):
    id: str
    name: str
    country: str = ""
    logo: str = ""
    url: str = ""


class LeagueGroup(BaseModel):
    league: League
    matches: list[Match] = Field(default_factory=list)
