"""Endpoint tests for the team feed REST surface."""

from datetime import datetime

import pytest

from teamfeed.models import Comment, Post


async def create(client, title="Weekly update", team_id="team-1", headers=None, **extra):
    body = {"team_id": team_id, "title": title, "description": "<p>Hi</p>", **extra}
    return await client.post("/posts", json=body, headers=headers)


@pytest.mark.asyncio
async def test_create_and_list_in_creation_order(client, actor_headers):
    for title in ("First post", "Second post", "Third post"):
        resp = await create(client, title, headers=actor_headers)
        assert resp.status_code == 201

    resp = await client.get("/teams/team-1/posts")
    assert resp.status_code == 200
    posts = resp.json()
    assert [p["title"] for p in posts] == ["First post", "Second post", "Third post"]
    assert posts[0]["created_by"] == "user-1"
    assert posts[0]["is_pinned"] is False
    assert posts[0]["reactions"] == {}
    assert posts[0]["comments"] == []

    assert (await client.get("/teams/other/posts")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("title", ["x", "y" * 51, "   "])
async def test_create_rejects_title_length(client, title):
    resp = await create(client, title)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_trims_title(client):
    resp = await create(client, "   ok   ")
    assert resp.status_code == 201
    assert resp.json()["title"] == "ok"


@pytest.mark.asyncio
async def test_toggle_pin_flips_flag(client):
    post_id = (await create(client)).json()["id"]

    first = await client.post(f"/posts/{post_id}/pin")
    second = await client.post(f"/posts/{post_id}/pin")

    assert first.json()["is_pinned"] is True
    assert second.json()["is_pinned"] is False
    assert (await client.post("/posts/missing/pin")).status_code == 404


@pytest.mark.asyncio
async def test_reactions_toggle_membership(client):
    post_id = (await create(client)).json()["id"]
    ada = {"X-User-Id": "ada"}
    bob = {"X-User-Id": "bob"}

    r1 = await client.post(f"/posts/{post_id}/reactions", json={"emoji": "like"}, headers=ada)
    r2 = await client.post(f"/posts/{post_id}/reactions", json={"emoji": "like"}, headers=bob)
    r3 = await client.post(f"/posts/{post_id}/reactions", json={"emoji": "like"}, headers=ada)
    r4 = await client.post(f"/posts/{post_id}/reactions", json={}, headers=ada)

    assert r1.json()["reactions"] == {"like": ["ada"]}
    assert r2.json()["reactions"] == {"like": ["ada", "bob"]}
    assert r3.json()["reactions"] == {"like": ["bob"]}
    assert r4.json()["reactions"] == {"like": ["bob", "ada"]}

    stored = (await client.get(f"/posts/{post_id}")).json()
    assert stored["reactions"] == {"like": ["bob", "ada"]}


@pytest.mark.asyncio
async def test_reaction_requires_actor(client):
    post_id = (await create(client)).json()["id"]
    resp = await client.post(f"/posts/{post_id}/reactions", json={"emoji": "like"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_comments_append_in_order(client):
    post_id = (await create(client)).json()["id"]

    for n, text in enumerate(["first", "second", "third"]):
        resp = await client.post(
            f"/posts/{post_id}/comments",
            json={"content": f"  {text} "},
            headers={"X-User-Id": f"u{n}"},
        )
        assert resp.status_code == 201

    comments = resp.json()["comments"]
    assert [c["content"] for c in comments] == ["first", "second", "third"]
    assert [c["author_id"] for c in comments] == ["u0", "u1", "u2"]

    stored = (await client.get(f"/posts/{post_id}")).json()
    assert [c["content"] for c in stored["comments"]] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_comment_validation(client, actor_headers):
    post_id = (await create(client)).json()["id"]

    blank = await client.post(f"/posts/{post_id}/comments", json={"content": "   "}, headers=actor_headers)
    anonymous = await client.post(f"/posts/{post_id}/comments", json={"content": "hi"})
    missing = await client.post("/posts/nope/comments", json={"content": "hi"}, headers=actor_headers)

    assert blank.status_code == 422
    assert anonymous.status_code == 401
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_post(client):
    post_id = (await create(client)).json()["id"]

    resp = await client.patch(f"/posts/{post_id}", json={"title": " Renamed ", "section_id": "s1"})

    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert resp.json()["section_id"] == "s1"
    assert resp.json()["description"] == "<p>Hi</p>"
    assert (await client.patch(f"/posts/{post_id}", json={"title": None})).status_code == 400


@pytest.mark.asyncio
async def test_delete_post_removes_it_and_its_comments(client, actor_headers):
    post_id = (await create(client)).json()["id"]
    await client.post(f"/posts/{post_id}/comments", json={"content": "bye"}, headers=actor_headers)

    assert (await client.delete(f"/posts/{post_id}")).status_code == 204
    assert (await client.get(f"/posts/{post_id}")).status_code == 404
    assert (await client.delete(f"/posts/{post_id}")).status_code == 404


@pytest.mark.asyncio
async def test_users_batch_fetch(client):
    ada = (await client.post("/users/", json={"name": "Ada", "email": "ada@example.com"})).json()
    bob = (await client.post("/users/", json={"name": "Bob"})).json()

    resp = await client.get("/users/", params={"ids": f"{ada['id']},{bob['id']},ghost"})

    assert resp.status_code == 200
    assert sorted(u["name"] for u in resp.json()) == ["Ada", "Bob"]
    dup = await client.post("/users/", json={"name": "Ada 2", "email": "ada@example.com"})
    assert dup.status_code == 409
    assert (await client.get("/users/ghost")).status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_comments_sharing_a_position_read_back_in_a_stable_order(client, db):
    t0 = datetime(2024, 3, 1, 9, 0, 0)
    t1 = datetime(2024, 3, 1, 9, 0, 5)
    db.add(Post(id="p-race", team_id="team-1", title="Race", reactions={}))
    await db.flush()
    # Appends that all saw an empty thread
    db.add_all([
        Comment(id="c-b", post_id="p-race", author_id="u2", content="second", position=0, created_at=t1),
        Comment(id="c-z", post_id="p-race", author_id="u3", content="third", position=0, created_at=t1),
        Comment(id="c-a", post_id="p-race", author_id="u1", content="first", position=0, created_at=t0),
    ])
    await db.commit()

    reads = [(await client.get("/posts/p-race")).json()["comments"] for _ in range(3)]

    for comments in reads:
        assert [c["id"] for c in comments] == ["c-a", "c-b", "c-z"]
