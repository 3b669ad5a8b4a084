"""
backend/tests/test_team_service.py

Purpose:
    Team lookup-or-create by exact name, the concurrent-insert re-read and
    store error wrapping.
"""

from __future__ import annotations

import pytest
from bson import ObjectId

import matchdesk.database as _db
from fake_mongo import FakeCollection, FakeDB
from matchdesk.errors import PersistenceFailure
from matchdesk.services import team_service


class _RacingTeams(FakeCollection):
    """The first lookup misses although another writer already stored the team."""

    def __init__(self, docs):
        super().__init__(docs, unique=("name",))
        self.lookups = 0

    async def find_one(self, query=None, projection=None):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return await super().find_one(query, projection)


@pytest.mark.asyncio
async def test_resolve_team_id_creates_once_and_reuses(monkeypatch):
    fake = FakeDB()
    monkeypatch.setattr(_db, "db", fake, raising=False)

    first = await team_service.resolve_team_id("Arsenal", "ars.png")
    second = await team_service.resolve_team_id("Arsenal", "other.png")

    assert first == second
    assert len(fake.teams.docs) == 1
    assert fake.teams.docs[0]["logo_url"] == "ars.png"
    assert fake.teams.docs[0]["created_at"] is not None


@pytest.mark.asyncio
async def test_resolve_team_id_is_case_sensitive_on_name(monkeypatch):
    fake = FakeDB()
    monkeypatch.setattr(_db, "db", fake, raising=False)

    a = await team_service.resolve_team_id("Arsenal")
    b = await team_service.resolve_team_id("arsenal")

    assert a != b
    assert sorted(d["name"] for d in fake.teams.docs) == ["Arsenal", "arsenal"]


@pytest.mark.asyncio
async def test_resolve_team_id_recovers_from_concurrent_insert(monkeypatch):
    existing_id = ObjectId()
    fake = FakeDB()
    fake.teams = _RacingTeams([{"_id": existing_id, "name": "Chelsea", "logo_url": ""}])
    monkeypatch.setattr(_db, "db", fake, raising=False)

    team_id = await team_service.resolve_team_id("Chelsea")

    assert team_id == existing_id
    assert len(fake.teams.docs) == 1


@pytest.mark.asyncio
async def test_resolve_team_id_wraps_store_errors(monkeypatch):
    fake = FakeDB()
    fake.teams.fail_on("insert_one")
    monkeypatch.setattr(_db, "db", fake, raising=False)

    with pytest.raises(PersistenceFailure, match="Everton"):
        await team_service.resolve_team_id("Everton")


@pytest.mark.asyncio
async def test_teams_by_id_ignores_missing_and_none(monkeypatch):
    known = ObjectId()
    fake = FakeDB(teams=[{"_id": known, "name": "Fulham"}])
    monkeypatch.setattr(_db, "db", fake, raising=False)

    found = await team_service.teams_by_id([known, None, ObjectId(), known])

    assert list(found) == [known]
    assert await team_service.teams_by_id([None]) == {}
