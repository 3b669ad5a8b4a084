"""
backend/tests/test_match_admin_service.py

Purpose:
    Manual match writes, provider row import with team resolution, local
    time handling for admin input and dashboard counters.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from bson import ObjectId

import matchdesk.database as _db
from fake_mongo import FakeDB
from matchdesk.errors import PersistenceFailure
from matchdesk.models.match import MatchPatch, MatchView, MatchWrite, TeamRef
from matchdesk.services import match_admin_service


def _provider_row(**overrides) -> MatchView:
    data = {
        "id": "p1",
        "home_team_id": "ars",
        "away_team_id": "che",
        "home_team": TeamRef(id="ars", name="Arsenal", logo_url="ars.png"),
        "away_team": TeamRef(id="che", name="Chelsea"),
        "home_score": 0,
        "away_score": 0,
        "status": "upcoming",
        "competition": "Premier League",
        "start_time": "2024-05-01T15:00:00",
        "is_api_match": True,
    }
    data.update(overrides)
    return MatchView(**data)


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDB()
    monkeypatch.setattr(_db, "db", fake, raising=False)
    return fake


@pytest.mark.asyncio
async def test_import_creates_teams_and_applies_overrides(fake_db):
    existing = ObjectId()
    fake_db.teams.docs.append({"_id": existing, "name": "Arsenal", "logo_url": "old.png"})

    match_id = await match_admin_service.import_provider_match(
        _provider_row(), MatchPatch(stream_url="https://streams.example/ars")
    )

    [doc] = fake_db.matches.docs
    assert doc["_id"] == match_id
    assert doc["home_team_id"] == existing
    assert doc["away_team_id"] == next(t["_id"] for t in fake_db.teams.docs if t["name"] == "Chelsea")
    assert doc["start_time"] == datetime(2024, 5, 1, 15, tzinfo=timezone.utc)
    assert doc["stream_url"] == "https://streams.example/ars"
    assert fake_db.teams.docs[0]["logo_url"] == "old.png"


@pytest.mark.asyncio
async def test_import_override_without_start_time_keeps_row_time(fake_db):
    await match_admin_service.import_provider_match(_provider_row(), MatchPatch(start_time=None, venue="Emirates"))

    [doc] = fake_db.matches.docs
    assert doc["start_time"] == datetime(2024, 5, 1, 15, tzinfo=timezone.utc)
    assert doc["venue"] == "Emirates"


@pytest.mark.asyncio
async def test_import_rejects_stored_rows_and_missing_teams(fake_db):
    with pytest.raises(ValueError, match="already stored"):
        await match_admin_service.import_provider_match(_provider_row(is_api_match=False))
    with pytest.raises(ValueError, match="no team names"):
        await match_admin_service.import_provider_match(_provider_row(away_team=None))
    assert fake_db.matches.docs == []


@pytest.mark.asyncio
async def test_import_surfaces_team_store_failure(fake_db):
    fake_db.teams.fail_on("insert_one")

    with pytest.raises(PersistenceFailure):
        await match_admin_service.import_provider_match(_provider_row())


@pytest.mark.asyncio
async def test_create_match_reads_naive_time_as_local(fake_db, monkeypatch):
    from matchdesk.config import settings

    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", "Europe/Berlin")
    home, away = ObjectId(), ObjectId()

    await match_admin_service.create_match(
        MatchWrite(home_team_id=str(home), away_team_id=str(away), start_time=datetime(2024, 5, 1, 20, 0))
    )

    [doc] = fake_db.matches.docs
    assert doc["home_team_id"] == home
    assert doc["start_time"] == datetime(2024, 5, 1, 18, tzinfo=timezone.utc)
    assert doc["status"] == "upcoming"


@pytest.mark.asyncio
async def test_update_and_delete(fake_db):
    match_id = ObjectId()
    fake_db.matches.docs.append({"_id": match_id, "home_score": 0, "status": "upcoming"})

    assert await match_admin_service.update_match(str(match_id), MatchPatch(home_score=2, status="live"))
    assert fake_db.matches.docs[0]["home_score"] == 2
    assert fake_db.matches.docs[0]["status"] == "live"
    assert "away_score" not in fake_db.matches.docs[0]

    assert not await match_admin_service.update_match(str(ObjectId()), MatchPatch(home_score=1))
    with pytest.raises(ValueError):
        await match_admin_service.update_match("not-an-id", MatchPatch())

    assert await match_admin_service.delete_match(str(match_id))
    assert not await match_admin_service.delete_match(str(match_id))


@pytest.mark.asyncio
async def test_dashboard_stats(fake_db):
    fake_db.teams.docs = [{"_id": ObjectId(), "name": n} for n in ("A", "B", "C")]
    fake_db.matches.docs = [
        {"_id": ObjectId(), "status": "live", "stream_url": "https://s/1", "start_time": datetime(2024, 5, 1, 15, tzinfo=timezone.utc)},
        {"_id": ObjectId(), "status": "live", "stream_url": "", "start_time": datetime(2024, 5, 1, 17, tzinfo=timezone.utc)},
        {"_id": ObjectId(), "status": "finished", "stream_url": "https://s/2", "start_time": datetime(2024, 4, 30, 15, tzinfo=timezone.utc)},
        {"_id": ObjectId(), "status": "upcoming", "stream_url": None, "start_time": datetime(2024, 5, 1, 20, tzinfo=timezone.utc)},
    ]

    stats = await match_admin_service.dashboard_stats(today=date(2024, 5, 1))

    assert (stats.live_matches, stats.active_streams, stats.total_teams) == (2, 1, 3)
