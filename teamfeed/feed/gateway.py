"""
Post mutation gateway: one coroutine per verb, one remote round trip each.

Input problems are caught here before anything goes over the wire
(ValidationError / AuthRequiredError). Remote outcomes are normalised:

  create / update / react / comment  → domain value, PersistenceError on failure
  toggle_pin                         → updated Post, or None on failure
  delete                             → True / False
  fetch_posts / fetch_profile        → domain value, FetchError on failure
"""
import logging
from typing import Optional

from pydantic import ValidationError as SchemaError

from teamfeed.actor import Actor, ActorAccessor
from teamfeed.clients.api_client import ApiClient, Envelope
from teamfeed.config import settings
from teamfeed.errors import AuthRequiredError, FetchError, PersistenceError, ValidationError
from teamfeed.schemas import CommentResponse as Comment
from teamfeed.schemas import PostResponse as Post
from teamfeed.schemas import UserResponse as UserProfile

logger = logging.getLogger(__name__)

POST_TYPES = ("post", "announcement")


def clean_title(title: Optional[str]) -> str:
    """Trimmed title, or ValidationError when its length is outside the allowed range."""
    trimmed = (title or "").strip()
    low, high = settings.post_title_min_length, settings.post_title_max_length
    if not low <= len(trimmed) <= high:
        raise ValidationError(f"Title must be between {low} and {high} characters")
    return trimmed


def clean_comment(content: Optional[str]) -> str:
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationError("Comment cannot be empty")
    return trimmed


def _decode(model, data, what: str, error_cls=PersistenceError):
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise error_cls(f"Malformed {what} in response: {exc}") from exc


class PostGateway:
    def __init__(self, api: ApiClient, current_actor: ActorAccessor) -> None:
        self.api = api
        self.current_actor = current_actor

    def _actor_id(self) -> Optional[str]:
        actor = self.current_actor()
        return actor.id if actor else None

    def _require_actor(self, action: str) -> Actor:
        actor = self.current_actor()
        if actor is None or not actor.id:
            raise AuthRequiredError(f"Sign in to {action}")
        return actor

    # ── Reads ──────────────────────────────────────────────────────────────

    async def fetch_posts(self, team_id: Optional[str]) -> list[Post]:
        if not team_id:
            raise FetchError("Team id is required")
        env = await self.api.list_posts(team_id)
        if not env.success:
            raise FetchError(f"Failed to load posts for team {team_id}: {env.error}")
        return [_decode(Post, row, "post", FetchError) for row in env.data or []]

    async def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        env = await self.api.get_user(user_id)
        if not env.success:
            if env.status_code == 404:
                return None
            raise FetchError(f"Failed to load user {user_id}: {env.error}")
        return _decode(UserProfile, env.data, "user", FetchError)

    # ── Mutations ──────────────────────────────────────────────────────────

    async def create(
        self,
        title: str,
        description: str = "",
        type: str = "post",
        team_id: Optional[str] = None,
        section_id: Optional[str] = None,
    ) -> Post:
        title = clean_title(title)
        if not team_id:
            raise ValidationError("Team id is required")
        if type not in POST_TYPES:
            raise ValidationError(f"Unknown post type '{type}'")

        payload = {
            "team_id": team_id,
            "title": title,
            "description": description or "",
            "type": type,
            "section_id": section_id,
        }
        env = await self.api.create_post(payload, actor_id=self._actor_id())
        if not env.success:
            raise PersistenceError(f"Failed to create post: {env.error}")
        return _decode(Post, env.data, "post")

    async def update(self, post_id: str, **changes) -> Post:
        if "title" in changes:
            changes["title"] = clean_title(changes["title"])
        env = await self.api.update_post(post_id, changes, actor_id=self._actor_id())
        if not env.success:
            raise PersistenceError(f"Failed to update post {post_id}: {env.error}")
        return _decode(Post, env.data, "post")

    async def toggle_pin(self, post_id: str) -> Optional[Post]:
        env = await self.api.toggle_pin(post_id, actor_id=self._actor_id())
        if not env.success:
            logger.error("Toggling pin on post %s failed: %s", post_id, env.error)
            return None
        return _decode(Post, env.data, "post")

    async def react(self, post_id: str, emoji: Optional[str] = None) -> dict[str, list[str]]:
        actor = self._require_actor("react")
        env = await self.api.react(post_id, emoji or settings.default_reaction, actor_id=actor.id)
        if not env.success:
            raise PersistenceError(f"Failed to react to post {post_id}: {env.error}")
        return dict((env.data or {}).get("reactions") or {})

    async def comment(self, post_id: str, content: str) -> list[Comment]:
        actor = self._require_actor("comment")
        content = clean_comment(content)
        env = await self.api.comment(post_id, content, actor_id=actor.id)
        if not env.success:
            raise PersistenceError(f"Failed to comment on post {post_id}: {env.error}")
        return [_decode(Comment, c, "comment") for c in (env.data or {}).get("comments") or []]

    async def delete(self, post_id: str) -> bool:
        env: Envelope = await self.api.delete_post(post_id, actor_id=self._actor_id())
        if not env.success:
            logger.error("Deleting post %s failed: %s", post_id, env.error)
        return env.success
