"""
Team Feed API client — the remote access facade used by the feed SDK.

Every call resolves to an `Envelope` instead of raising: callers check
`success` and read `data` or `error`. This keeps network and HTTP failures
on the same code path as an application-level rejection, which is what
the mutation gateway normalises into domain results.

Collection helpers mirror the server's REST surface:

  list_posts(team_id)            GET    /teams/{team_id}/posts
  get_post(id)                   GET    /posts/{id}
  create_post(payload)           POST   /posts
  update_post(id, changes)       PATCH  /posts/{id}
  delete_post(id)                DELETE /posts/{id}
  toggle_pin(id)                 POST   /posts/{id}/pin
  react(id, emoji)               POST   /posts/{id}/reactions
  comment(id, content)           POST   /posts/{id}/comments
  get_user(id)                   GET    /users/{id}
  users_in(ids)                  GET    /users?ids=...
  agile(**params)                GET    /teams/agile
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import httpx

from teamfeed.actor import ACTOR_HEADER
from teamfeed.config import settings
from teamfeed.telemetry import CLIENT_REQUESTS_TOTAL

logger = logging.getLogger(__name__)


@dataclass
class Envelope:
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout or settings.api_timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "ApiClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        actor_id: Optional[str] = None,
    ) -> Envelope:
        if self._http is None:
            raise RuntimeError("ApiClient not started — call start() first")

        headers = {ACTOR_HEADER: actor_id} if actor_id else None
        try:
            resp = await self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            CLIENT_REQUESTS_TOTAL.labels(method=method, outcome="transport_error").inc()
            return Envelope(success=False, error=str(exc) or exc.__class__.__name__)

        if resp.is_error:
            message = _error_message(resp)
            logger.warning("%s %s → %d: %s", method, path, resp.status_code, message)
            CLIENT_REQUESTS_TOTAL.labels(method=method, outcome="http_error").inc()
            return Envelope(success=False, error=message, status_code=resp.status_code)

        CLIENT_REQUESTS_TOTAL.labels(method=method, outcome="ok").inc()
        data = resp.json() if resp.content else None
        return Envelope(success=True, data=data, status_code=resp.status_code)

    # ── Posts ──────────────────────────────────────────────────────────────

    async def list_posts(self, team_id: str) -> Envelope:
        return await self.request("GET", f"/teams/{team_id}/posts")

    async def get_post(self, post_id: str) -> Envelope:
        return await self.request("GET", f"/posts/{post_id}")

    async def create_post(self, payload: dict, actor_id: Optional[str] = None) -> Envelope:
        return await self.request("POST", "/posts", json=payload, actor_id=actor_id)

    async def update_post(self, post_id: str, changes: dict, actor_id: Optional[str] = None) -> Envelope:
        return await self.request("PATCH", f"/posts/{post_id}", json=changes, actor_id=actor_id)

    async def delete_post(self, post_id: str, actor_id: Optional[str] = None) -> Envelope:
        return await self.request("DELETE", f"/posts/{post_id}", actor_id=actor_id)

    async def toggle_pin(self, post_id: str, actor_id: Optional[str] = None) -> Envelope:
        return await self.request("POST", f"/posts/{post_id}/pin", actor_id=actor_id)

    async def react(self, post_id: str, emoji: str, actor_id: Optional[str] = None) -> Envelope:
        return await self.request(
            "POST", f"/posts/{post_id}/reactions", json={"emoji": emoji}, actor_id=actor_id
        )

    async def comment(self, post_id: str, content: str, actor_id: Optional[str] = None) -> Envelope:
        return await self.request(
            "POST", f"/posts/{post_id}/comments", json={"content": content}, actor_id=actor_id
        )

    # ── Users ──────────────────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Envelope:
        return await self.request("GET", f"/users/{user_id}")

    async def users_in(self, user_ids: Iterable[str]) -> Envelope:
        return await self.request("GET", "/users/", params={"ids": ",".join(user_ids)})

    # ── Agile ──────────────────────────────────────────────────────────────

    async def agile(self, **params: str) -> Envelope:
        """GET /teams/agile with camelCase params (teamId, type, roleId, agileId)."""
        return await self.request("GET", "/teams/agile", params=params)
