"""
backend/matchdesk/services/match_identity.py

Purpose:
    Heuristic match identity. The feed's match ids do not map onto stored
    rows, so a fixture is identified by (home team, away team, local calendar
    day of kickoff) when persisting, and by (lowercased home team name, day)
    when suppressing provider rows in the day view.

    Two fixtures between the same pair on the same day collapse into one row.

Dependencies:
    - matchdesk.utils
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from matchdesk.utils import local_date_of, local_day_bounds


class DayPairIdentity:
    """Default identity strategy. Swap the instance to change matching."""

    def key(self, home_team_id: Any, away_team_id: Any, start_time: datetime) -> tuple:
        return (str(home_team_id), str(away_team_id), local_date_of(start_time).isoformat())

    def store_query(self, home_team_id: Any, away_team_id: Any, start_time: datetime) -> dict:
        """Mongo filter for stored rows sharing this identity."""
        day_start, day_end = local_day_bounds(local_date_of(start_time))
        return {
            "home_team_id": home_team_id,
            "away_team_id": away_team_id,
            "start_time": {"$gte": day_start, "$lt": day_end},
        }

    def display_key(self, home_team_name: str | None, day: date | str) -> str:
        day_text = day.isoformat() if isinstance(day, date) else str(day)
        return f"{(home_team_name or '').lower()}|{day_text}"


match_identity = DayPairIdentity()
