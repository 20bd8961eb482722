"""
FeedSession — the event-handler layer of a team feed view.

A session owns the view state (filter, sort, search, expanded posts), the
post store and the author profile cache for one mounted feed. Each handler
is an independent unit of work:

  * input problems (ValidationError, AuthRequiredError) go to the notifier
  * backend failures are logged and leave local state untouched
  * local state changes only after the server confirmed the mutation
  * a second mutation of the same kind on the same post is ignored while
    the first is in flight
  * results arriving after close() are dropped
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Protocol

from teamfeed.errors import ACTOR_FACING_ERRORS, FetchError, TeamFeedError
from teamfeed.feed.gateway import PostGateway
from teamfeed.feed.ordering import ALL_SECTIONS, SORT_NEWEST, order_posts
from teamfeed.feed.profiles import ProfileCache
from teamfeed.feed.store import PostFeedStore
from teamfeed.schemas import PostResponse as Post

logger = logging.getLogger(__name__)


class ConfirmService(Protocol):
    async def confirm(
        self,
        *,
        title: str,
        description: str,
        on_confirm: Callable[[], Awaitable[None]],
    ) -> None:
        """Prompt the user; await `on_confirm` only on an affirmative answer."""


class Notifier(Protocol):
    def error(self, message: str) -> None:
        ...


@dataclass
class FeedViewState:
    section: str = ALL_SECTIONS
    sort_option: str = SORT_NEWEST
    search: str = ""
    expanded: set[str] = field(default_factory=set)


class FeedSession:
    def __init__(
        self,
        team_id: str,
        gateway: PostGateway,
        confirm: ConfirmService,
        notifier: Notifier,
    ) -> None:
        self.team_id = team_id
        self.gateway = gateway
        self.confirm = confirm
        self.notifier = notifier
        self.store = PostFeedStore(gateway)
        self.profiles = ProfileCache()
        self.view = FeedViewState()
        self._in_flight: set[tuple[str, str]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Dispose of the view; later results are discarded."""
        self._closed = True
        self.profiles.close()
        self._in_flight.clear()
        logger.debug("Feed session for team %s closed", self.team_id)

    # ── Loading ────────────────────────────────────────────────────────────

    async def open(self) -> list[Post]:
        """Load the team's posts and warm the author cache. Never raises."""
        try:
            posts = await self.store.fetch(self.team_id)
        except FetchError:
            return []
        if self._closed:
            logger.debug("Dropping posts for team %s: session closed", self.team_id)
            return []
        self.store.replace_all(self.team_id, posts)

        authors = {p.created_by for p in self.store.posts if p.created_by}
        await asyncio.gather(
            *(self.profiles.ensure(uid, self.gateway.fetch_profile) for uid in authors)
        )
        if self._closed:
            return []
        return self.visible_posts()

    def visible_posts(self) -> list[Post]:
        return order_posts(
            self.store.posts,
            section=self.view.section,
            search=self.view.search,
            sort_option=self.view.sort_option,
        )

    # ── View state ─────────────────────────────────────────────────────────

    def set_section(self, section: str) -> None:
        self.view.section = section or ALL_SECTIONS

    def set_sort(self, sort_option: str) -> None:
        self.view.sort_option = sort_option

    def set_search(self, text: str) -> None:
        self.view.search = text or ""

    def toggle_expanded(self, post_id: str) -> bool:
        if post_id in self.view.expanded:
            self.view.expanded.discard(post_id)
            return False
        self.view.expanded.add(post_id)
        return True

    # ── Mutations ──────────────────────────────────────────────────────────

    async def _run(self, post_id: str, verb: str, call: Callable[[], Awaitable]):
        """
        Run one gateway call under the in-flight and stale-response guards.
        Returns the call's result, or None when it was skipped, failed, or
        resolved after close().
        """
        key = (post_id, verb)
        if key in self._in_flight:
            logger.debug("%s on post %s already in flight; ignoring", verb, post_id)
            return None

        self._in_flight.add(key)
        try:
            result = await call()
        except ACTOR_FACING_ERRORS as exc:
            self.notifier.error(exc.message)
            return None
        except TeamFeedError as exc:
            logger.error("%s on post %s failed: %s", verb, post_id, exc)
            return None
        finally:
            self._in_flight.discard(key)

        if self._closed:
            logger.debug("Dropping %s result for post %s: session closed", verb, post_id)
            return None
        return result

    async def create_post(
        self,
        title: str,
        description: str = "",
        type: str = "post",
        section_id: Optional[str] = None,
    ) -> Optional[Post]:
        post = await self._run(
            self.team_id, "create",
            lambda: self.gateway.create(
                title, description, type=type, team_id=self.team_id, section_id=section_id
            ),
        )
        if post is not None:
            self.store.append(post)
        return post

    async def edit_post(self, post_id: str, **changes) -> Optional[Post]:
        post = await self._run(post_id, "update", lambda: self.gateway.update(post_id, **changes))
        if post is not None:
            self.store.apply_update_result(post)
        return post

    async def toggle_pin(self, post_id: str) -> Optional[Post]:
        post = await self._run(post_id, "pin", lambda: self.gateway.toggle_pin(post_id))
        self.store.apply_pin_result(post_id, post)
        return post

    async def react(self, post_id: str, emoji: Optional[str] = None) -> Optional[dict]:
        reactions = await self._run(post_id, "react", lambda: self.gateway.react(post_id, emoji))
        if reactions is not None:
            self.store.apply_reaction_result(post_id, reactions)
        return reactions

    async def add_comment(self, post_id: str, content: str) -> Optional[list]:
        comments = await self._run(post_id, "comment", lambda: self.gateway.comment(post_id, content))
        if comments is not None:
            self.store.apply_comment_result(post_id, comments)
        return comments

    async def delete_post(self, post_id: str) -> None:
        """Ask for confirmation, then delete; the post leaves the feed only if the server agreed."""

        async def on_confirm() -> None:
            deleted = await self._run(post_id, "delete", lambda: self.gateway.delete(post_id))
            if deleted:
                self.store.remove(post_id)
                self.view.expanded.discard(post_id)

        await self.confirm.confirm(
            title="Delete post",
            description="This post and its comments will be permanently deleted.",
            on_confirm=on_confirm,
        )
