#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for trying out the team feed.

Creates:
  • 8 users
  • 2 projects (one archived)
  • 12 posts in one team, a few pinned
  • Reactions and comment threads across posts
  • Agile records, roles, sprint plans and members (written straight to the
    database; the API has no agile write path)

Run after the API is up:
  python scripts/seed_data.py --api-url http://localhost:8000 --team-id team-demo

Pass --skip-agile when the script cannot reach the database.
"""
import argparse
import asyncio
import json
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional


BASE_USERS = [
    ("Alice Chen", "alice@example.com"),
    ("Bob Martinez", "bob@example.com"),
    ("Carol Singh", "carol@example.com"),
    ("Dave Kim", "dave@example.com"),
    ("Eve Johnson", "eve@example.com"),
    ("Frank Williams", "frank@example.com"),
    ("Grace Li", "grace@example.com"),
    ("Henry Brown", "henry@example.com"),
]

SAMPLE_POSTS = [
    ("Sprint 14 kickoff", "<p>Goals for the next two weeks are on the board.</p>", "announcement"),
    ("Release notes 2.3", "<p>Dark mode, faster search, fewer crashes.</p>", "announcement"),
    ("Standup moved to 9:45", "<p>Starting tomorrow, same room.</p>", "post"),
    ("Design review recap", "<p>We agreed on the new navigation layout.</p>", "post"),
    ("On-call handover", "<p>Two open incidents, both mitigated.</p>", "post"),
    ("Retro action items", "<ul><li>Smaller PRs</li><li>Earlier demos</li></ul>", "post"),
    ("Welcome Henry!", "<p>Henry joins the platform team this week.</p>", "post"),
    ("Hackathon ideas", "<p>Drop your ideas in the thread.</p>", "post"),
    ("Flaky test hunt", "<p>The checkout suite fails one run in ten.</p>", "post"),
    ("Office closed Friday", "<p>Building maintenance, work from home.</p>", "announcement"),
    ("API latency is down", "<p>p95 went from 480ms to 210ms after the index change.</p>", "post"),
    ("Customer feedback digest", "<p>Top request this month: bulk export.</p>", "post"),
]

SAMPLE_COMMENTS = [
    "Thanks for sharing!",
    "Great work everyone.",
    "Can we discuss this at standup?",
    "Added to the tracker.",
    "Nice, that was overdue.",
    "Who owns the follow-up?",
]

REACTIONS = ["like", "love", "tada", "rocket", "eyes"]

AGILE_ROLES = [
    ("Product owner", "Owns the backlog"),
    ("Scrum master", "Runs ceremonies"),
    ("Developer", None),
]


@dataclass
class ApiClient:
    base_url: str
    actor_id: Optional[str] = None

    def _send(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if self.actor_id:
            headers["X-User-Id"] = self.actor_id
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                raw = resp.read()
                return json.loads(raw) if raw else {}
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: dict) -> dict:
        return self._send("POST", path, data)

    def get(self, path: str) -> dict:
        return self._send("GET", path)

    def as_actor(self, actor_id: str) -> "ApiClient":
        return ApiClient(self.base_url, actor_id)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for _ in range(retries):
        try:
            result = client.get("/health")
            if result.get("status") == "ok":
                print("  API is ready!\n")
                return
        except urllib.error.URLError:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


async def seed_agile(team_id: str, user_ids: list[str]) -> str:
    """Write agile rows for `team_id` and return the active agile id."""
    from teamfeed.database import AsyncSessionLocal, init_db
    from teamfeed.models import AgileMember, AgileRole, SprintPlan, TeamAgile

    await init_db()
    today = date.today()
    now = datetime.utcnow()
    async with AsyncSessionLocal() as session:
        done = TeamAgile(
            team_id=team_id, name="Sprint 13", status="done",
            start_on=today - timedelta(days=28), end_on=today - timedelta(days=14),
            created_at=now - timedelta(days=28),
        )
        active = TeamAgile(
            team_id=team_id, name="Sprint 14", status="active",
            start_on=today - timedelta(days=7), end_on=today + timedelta(days=7),
            created_at=now - timedelta(days=7),
        )
        roles = [
            AgileRole(team_id=team_id, name=name, description=desc, created_at=now + timedelta(seconds=i))
            for i, (name, desc) in enumerate(AGILE_ROLES)
        ]
        session.add_all([done, active, *roles])
        await session.flush()

        session.add_all([
            SprintPlan(team_id=team_id, agile_id=done.id, title="Stabilise checkout",
                       goal="Zero P1 bugs", created_at=done.created_at),
            SprintPlan(team_id=team_id, agile_id=active.id, title="Bulk export",
                       goal="Ship CSV export to beta", created_at=active.created_at),
        ])
        for i, user_id in enumerate(user_ids[:5]):
            session.add(AgileMember(
                agile_id=active.id, user_id=user_id, role_id=roles[min(i, len(roles) - 1)].id,
                created_at=now + timedelta(seconds=i),
            ))
        # A member whose profile no longer exists
        session.add(AgileMember(agile_id=active.id, user_id="departed-user", created_at=now + timedelta(seconds=10)))
        await session.commit()
        return active.id


def main(api_url: str, team_id: str, skip_agile: bool) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Create users ─────────────────────────────────────────────────────
    print("Creating users...")
    user_ids: list[str] = []
    for name, email in BASE_USERS:
        result = client.post("/users/", {"name": name, "email": email})
        uid = result.get("id", "")
        if uid:
            user_ids.append(uid)
            print(f"  ✓ {name} ({uid})")
        else:
            print(f"  ✗ Failed to create {name}")

    if not user_ids:
        print("No users created — aborting")
        return

    # ── Create projects ──────────────────────────────────────────────────
    print("\nCreating projects...")
    owner = client.as_actor(user_ids[0])
    current = owner.post("/projects/", {"name": "Platform", "description": "Core services", "theme_color": "#2f6fed"})
    legacy = owner.post("/projects/", {"name": "Legacy portal", "theme_color": "#888888"})
    if legacy.get("id"):
        owner.post(f"/projects/{legacy['id']}/archive", {})
    print(f"  ✓ {current.get('id')} active, {legacy.get('id')} archived")

    # ── Create posts ──────────────────────────────────────────────────────
    print("\nCreating posts...")
    post_ids: list[str] = []
    for title, description, post_type in SAMPLE_POSTS:
        author = client.as_actor(random.choice(user_ids))
        result = author.post("/posts", {
            "team_id": team_id, "title": title, "description": description, "type": post_type,
        })
        pid = result.get("id", "")
        if pid:
            post_ids.append(pid)
    print(f"  ✓ {len(post_ids)} posts created")

    for pid in post_ids[:2]:
        client.post(f"/posts/{pid}/pin", {})
    print(f"  ✓ {min(2, len(post_ids))} posts pinned")

    # ── Reactions and comments ───────────────────────────────────────────
    print("\nAdding reactions and comments...")
    reactions = comments = 0
    for post_id in post_ids:
        for user_id in random.sample(user_ids, k=random.randint(0, 5)):
            client.as_actor(user_id).post(f"/posts/{post_id}/reactions", {"emoji": random.choice(REACTIONS)})
            reactions += 1
        for user_id in random.sample(user_ids, k=random.randint(0, 3)):
            client.as_actor(user_id).post(f"/posts/{post_id}/comments", {"content": random.choice(SAMPLE_COMMENTS)})
            comments += 1
    print(f"  ✓ {reactions} reactions, {comments} comments added")

    agile_id = None
    if not skip_agile:
        print("\nSeeding agile records...")
        agile_id = asyncio.run(seed_agile(team_id, user_ids))
        print(f"  ✓ active agile {agile_id}")

    # ── Print summary ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    print(f"# The team feed:")
    print(f"  curl -s '{api_url}/teams/{team_id}/posts' | python3 -m json.tool\n")
    print(f"# React as '{BASE_USERS[0][0]}':")
    if post_ids:
        print(f"  curl -s -X POST '{api_url}/posts/{post_ids[0]}/reactions' \\")
        print(f"    -H 'Content-Type: application/json' -H 'X-User-Id: {user_ids[0]}' \\")
        print(f"    -d '{{\"emoji\": \"like\"}}' | python3 -m json.tool\n")
    if agile_id:
        print(f"# Agile members with profiles:")
        print(f"  curl -s '{api_url}/teams/agile?agileId={agile_id}' | python3 -m json.tool\n")
        print(f"# Sprint plans:")
        print(f"  curl -s '{api_url}/teams/agile?teamId={team_id}&type=plans' | python3 -m json.tool\n")
    print(f"# Metrics: {api_url}/metrics")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the team feed")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--team-id", default="team-demo", help="Team to seed posts and agile data for")
    parser.add_argument("--skip-agile", action="store_true", help="Do not write agile rows to the database")
    args = parser.parse_args()
    main(args.api_url, args.team_id, args.skip_agile)
