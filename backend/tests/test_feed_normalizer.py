"""
backend/tests/test_feed_normalizer.py

Purpose:
    Status priority, live-clock parsing, team derivation and score/time
    projection of raw Flashscore matches.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from matchdesk.errors import MalformedRecord
from matchdesk.services.feed_normalizer import (
    UNKNOWN_TEAM_NAME,
    derive_status,
    is_placeholder_team,
    normalize_match,
    normalize_team,
    parse_live_minute,
)

# 2024-05-01T15:00:00Z
KICKOFF_TS = 1714575600


def _raw(**overrides):
    raw = {
        "match_id": "m-1",
        "timestamp": KICKOFF_TS,
        "match_status": {
            "stage": None,
            "is_cancelled": False,
            "is_postponed": False,
            "is_started": False,
            "is_in_progress": False,
            "is_finished": False,
            "live_time": None,
        },
        "home_team": {"team_id": "t-ars", "name": "Arsenal", "short_name": "ARS", "image_path": "ars.png"},
        "away_team": {"team_id": "t-che", "name": "Chelsea", "short_name": "CHE", "small_image_path": "che.png"},
        "scores": {"home": None, "away": None},
    }
    raw.update(overrides)
    return raw


@pytest.mark.parametrize(
    "flags, expected",
    [
        ({"is_finished": True, "is_in_progress": True}, "finished"),
        ({"is_in_progress": True, "is_cancelled": True}, "live"),
        ({"is_cancelled": True, "is_started": False}, "finished"),
        ({"is_postponed": True}, "finished"),
        ({"is_started": False}, "upcoming"),
        ({"is_started": True}, "live"),
    ],
)
def test_status_priority(flags, expected):
    status, _ = derive_status(flags, "live")
    assert status == expected


def test_missing_flags_fall_back_to_hint():
    assert derive_status(None, "upcoming") == ("upcoming", None)
    assert derive_status({}, "live") == ("live", None)
    assert derive_status({"stage": "1st half", "live_time": "12"}, "finished") == ("finished", None)


@pytest.mark.parametrize(
    "clock, minute",
    [("Half Time", 45), ("67", 67), ("90+3", 90), ("HT+2", None), ("", None), (None, None)],
)
def test_parse_live_minute(clock, minute):
    assert parse_live_minute(clock) == minute


def test_live_minute_only_set_for_live_matches():
    status, minute = derive_status({"is_finished": True, "live_time": "90"}, "live")
    assert status == "finished"
    assert minute is None

    status, minute = derive_status({"is_in_progress": True, "live_time": "HT+2"}, "live")
    assert status == "live"
    assert minute is None


def test_normalize_team_placeholder_and_derivations():
    placeholder = normalize_team(None, "home-m-1")
    assert placeholder.name == UNKNOWN_TEAM_NAME
    assert placeholder.short_name == "UNK"
    assert placeholder.id == "home-m-1"
    assert is_placeholder_team(placeholder)

    team = normalize_team(
        {"team_id": "9", "name": "Tottenham", "image_path": "big.png", "smaill_image_path": "tiny.png"},
        "fallback",
    )
    assert team.short_name == "TOT"
    assert team.logo == "tiny.png"
    assert not is_placeholder_team(team)


def test_normalize_match_projects_scores_and_local_time():
    match = normalize_match(
        _raw(
            match_status={"is_in_progress": True, "is_started": True, "live_time": "60"},
            scores={"home": 1, "away": 0, "home_1st_half": 1, "away_1st_half": 0},
        ),
        "Premier League",
        "upcoming",
        country="England",
    )

    assert match.status == "live"
    assert match.minute == 60
    assert match.home_score == 1
    assert match.away_score == 0
    assert match.score_1st_half.home == 1
    assert match.score_2nd_half is None
    assert match.start_time == "15:00"
    assert match.kickoff_at == datetime(2024, 5, 1, 15, 0, tzinfo=timezone.utc)
    assert match.competition == "Premier League"
    assert match.country == "England"
    assert match.stream_url is None
    assert match.home_team.logo == "ars.png"
    assert match.away_team.logo == "che.png"


def test_zero_score_is_kept_and_missing_score_is_none():
    match = normalize_match(_raw(scores={"home": 0, "away": None}), "Cup", "upcoming")
    assert match.home_score == 0
    assert match.away_score is None


def test_local_timezone_applies_to_start_time(monkeypatch):
    from matchdesk.config import settings

    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", "Europe/London")
    match = normalize_match(_raw(), "Cup", "upcoming")
    assert match.start_time == "16:00"


def test_missing_sides_get_placeholder_ids():
    match = normalize_match(_raw(home_team=None, away_team={"name": "Chelsea"}), "Cup", "upcoming")
    assert match.home_team.id == "home-m-1"
    assert match.home_team.name == UNKNOWN_TEAM_NAME
    assert match.away_team.id == "away-m-1"
    assert match.away_team.short_name == "CHE"


def test_no_timestamp_leaves_start_time_unset():
    match = normalize_match(_raw(timestamp=None), "Cup", "upcoming")
    assert match.start_time is None
    assert match.kickoff_at is None


@pytest.mark.parametrize(
    "raw",
    [
        "not-a-match",
        _raw(home_team="Arsenal"),
        _raw(scores=[1, 0]),
        _raw(scores={"home": "one", "away": 0}),
    ],
)
def test_malformed_records_raise(raw):
    with pytest.raises(MalformedRecord):
        normalize_match(raw, "Cup", "upcoming")
