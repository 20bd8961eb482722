"""Endpoint tests for GET /teams/agile and its member enrichment."""

from datetime import date, datetime, timedelta

import pytest
import pytest_asyncio

from teamfeed.errors import FetchError
from teamfeed.models import AgileMember, AgileRole, SprintPlan, TeamAgile, User
from teamfeed.repository import Collection
from teamfeed.services.agile import (
    AgileMembersQuery,
    AgileRolesQuery,
    RoleByIdQuery,
    SprintPlansQuery,
    TeamAgileQuery,
    decode_agile_query,
)

T0 = datetime(2024, 3, 1, 9, 0, 0)


def at(minutes):
    return T0 + timedelta(minutes=minutes)


@pytest_asyncio.fixture
async def seeded(db):
    db.add_all([
        User(id="u1", name="Ada", email="ada@example.com", avatar_url="https://img/ada.png"),
        User(id="u2", name="Bob", email=None, avatar_url=None),
        TeamAgile(id="a1", team_id="t1", name="Sprint 1", status="done",
                  start_on=date(2024, 1, 1), end_on=date(2024, 1, 14), created_at=at(1)),
        TeamAgile(id="a2", team_id="t1", name="Sprint 2", status="active", created_at=at(5)),
        TeamAgile(id="a3", team_id="t2", name="Other team", created_at=at(3)),
        TeamAgile(id="a4", team_id="t1", name="Empty sprint", created_at=at(0)),
        AgileRole(id="r1", team_id="t1", name="Scrum master", created_at=at(2)),
        AgileRole(id="r2", team_id="t1", name="Developer", created_at=at(1)),
        SprintPlan(id="s1", team_id="t1", agile_id="a1", title="Plan A", created_at=at(4)),
        SprintPlan(id="s2", team_id="t1", agile_id="a2", title="Plan B", created_at=at(6)),
    ])
    await db.flush()
    db.add_all([
        AgileMember(id="m1", agile_id="a1", user_id="u1", role_id="r1", created_at=at(3)),
        AgileMember(id="m2", agile_id="a1", user_id="ghost", role_id="r2", created_at=at(1)),
        AgileMember(id="m3", agile_id="a1", user_id="u2", created_at=at(2)),
        AgileMember(id="m4", agile_id="a2", user_id="ghost", created_at=at(1)),
    ])
    await db.commit()


def test_decode_precedence():
    assert decode_agile_query("t1", "agile", "r1", "a1") == TeamAgileQuery(team_id="t1")
    assert decode_agile_query("t1", "roles") == AgileRolesQuery(team_id="t1")
    assert decode_agile_query("t1", "plans") == SprintPlansQuery(team_id="t1")
    assert decode_agile_query("t1", "bogus", "r1", "a1") == RoleByIdQuery(role_id="r1")
    assert decode_agile_query(None, "agile", None, "a1") == AgileMembersQuery(agile_id="a1")
    assert decode_agile_query("t1", None) is None
    assert decode_agile_query() is None


@pytest.mark.asyncio
async def test_team_agile_newest_first(client, seeded):
    resp = await client.get("/teams/agile", params={"teamId": "t1", "type": "agile"})

    assert resp.status_code == 200
    body = resp.json()
    assert [a["id"] for a in body] == ["a2", "a1", "a4"]
    assert body[1]["start_on"] == "2024-01-01"


@pytest.mark.asyncio
async def test_roles_and_plans_oldest_first(client, seeded):
    roles = await client.get("/teams/agile", params={"teamId": "t1", "type": "roles"})
    plans = await client.get("/teams/agile", params={"teamId": "t1", "type": "plans"})

    assert [r["id"] for r in roles.json()] == ["r2", "r1"]
    assert [p["id"] for p in plans.json()] == ["s1", "s2"]


@pytest.mark.asyncio
async def test_unknown_team_returns_empty_list(client, seeded):
    resp = await client.get("/teams/agile", params={"teamId": "nobody", "type": "roles"})
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_role_by_id_returns_object_or_null(client, seeded):
    found = await client.get("/teams/agile", params={"roleId": "r1"})
    missing = await client.get("/teams/agile", params={"roleId": "nope"})

    assert found.status_code == 200
    assert found.json()["name"] == "Scrum master"
    assert missing.status_code == 200
    assert missing.json() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"teamId": "t1"}, {"type": "roles"}, {"teamId": "t1", "type": "x"}])
async def test_unrecognised_parameters_are_rejected(client, seeded, params):
    resp = await client.get("/teams/agile", params=params)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request parameters"}


@pytest.mark.asyncio
async def test_members_are_enriched_in_member_order(client, seeded):
    resp = await client.get("/teams/agile", params={"agileId": "a1"})

    assert resp.status_code == 200
    members = resp.json()
    assert [m["id"] for m in members] == ["m2", "m3", "m1"]

    ghost, bob, ada = members
    assert "name" not in ghost
    assert bob["name"] == "Bob"
    assert bob["email"] is None
    assert ada["avatar_url"] == "https://img/ada.png"
    assert ada["role_id"] == "r1"


@pytest.mark.asyncio
async def test_members_without_profiles_pass_through(client, seeded):
    resp = await client.get("/teams/agile", params={"agileId": "a2"})

    assert resp.status_code == 200
    assert resp.json() == [
        {"id": "m4", "agile_id": "a2", "user_id": "ghost", "role_id": None,
         "created_at": "2024-03-01T09:01:00"},
    ]


@pytest.mark.asyncio
async def test_empty_agile_skips_profile_lookup(client, seeded, monkeypatch):
    calls = []
    original = Collection.in_

    async def recording_in(self, ids, column="id"):
        calls.append(list(ids))
        return await original(self, ids, column)

    monkeypatch.setattr(Collection, "in_", recording_in)

    resp = await client.get("/teams/agile", params={"agileId": "a4"})

    assert resp.status_code == 200
    assert resp.json() == []
    assert calls == []


@pytest.mark.asyncio
async def test_profile_failure_degrades_to_plain_members(client, seeded, monkeypatch):
    async def broken_in(self, ids, column="id"):
        raise FetchError("profiles unavailable")

    monkeypatch.setattr(Collection, "in_", broken_in)

    resp = await client.get("/teams/agile", params={"agileId": "a1"})

    assert resp.status_code == 200
    members = resp.json()
    assert [m["id"] for m in members] == ["m2", "m3", "m1"]
    assert all("name" not in m for m in members)


@pytest.mark.asyncio
async def test_member_lookup_failure_returns_500_with_empty_list(client, seeded, monkeypatch):
    original = Collection.list

    async def failing_list(self, *args, **kwargs):
        if self.model is AgileMember:
            raise FetchError("agile_member unavailable")
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(Collection, "list", failing_list)

    resp = await client.get("/teams/agile", params={"agileId": "a1"})

    assert resp.status_code == 500
    assert resp.json() == []


@pytest.mark.asyncio
async def test_other_failures_report_the_message(client, seeded, monkeypatch):
    async def failing_list(self, *args, **kwargs):
        raise FetchError("agile_role unavailable")

    monkeypatch.setattr(Collection, "list", failing_list)

    resp = await client.get("/teams/agile", params={"teamId": "t1", "type": "roles"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "agile_role unavailable"}
