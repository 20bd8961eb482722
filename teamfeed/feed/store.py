"""
In-memory copy of one team's posts.

The store only ever applies results the server has already confirmed;
every update is an id-keyed scan-and-replace of a single field, so the
feed never needs a full reload after a mutation. An id is never present
twice.
"""
import logging
from typing import Optional

from teamfeed.errors import FetchError
from teamfeed.feed.gateway import PostGateway
from teamfeed.schemas import CommentResponse as Comment
from teamfeed.schemas import PostResponse as Post

logger = logging.getLogger(__name__)


class PostFeedStore:
    def __init__(self, gateway: PostGateway) -> None:
        self.gateway = gateway
        self.team_id: Optional[str] = None
        self._posts: list[Post] = []
        self._pinned: set[str] = set()
        self.loading = False
        self.last_error: Optional[str] = None

    @property
    def posts(self) -> list[Post]:
        return list(self._posts)

    @property
    def pinned_ids(self) -> frozenset[str]:
        return frozenset(self._pinned)

    def get(self, post_id: str) -> Optional[Post]:
        return next((p for p in self._posts if p.id == post_id), None)

    def __len__(self) -> int:
        return len(self._posts)

    async def fetch(self, team_id: Optional[str]) -> list[Post]:
        """
        Fetch the team's posts (oldest first) without touching the feed.

        On failure `loading` is cleared and the FetchError is re-raised for
        the caller to report.
        """
        self.loading = True
        try:
            posts = await self.gateway.fetch_posts(team_id)
        except FetchError as exc:
            self.last_error = exc.message
            logger.error("Loading posts for team %s failed: %s", team_id, exc)
            raise
        finally:
            self.loading = False
        return posts

    def replace_all(self, team_id: Optional[str], posts: list[Post]) -> list[Post]:
        """Replace local state with `posts` and rebuild the pinned-id set."""
        self.team_id = team_id
        self.last_error = None
        self._posts = []
        for post in posts:
            self._insert(post)
        self._pinned = {p.id for p in self._posts if p.is_pinned}
        logger.info("Loaded %d posts for team %s (%d pinned)", len(self._posts), team_id, len(self._pinned))
        return self.posts

    async def load(self, team_id: Optional[str]) -> list[Post]:
        """Fetch and replace in one step; a failed fetch leaves the current list untouched."""
        return self.replace_all(team_id, await self.fetch(team_id))

    def _insert(self, post: Post) -> bool:
        if self.get(post.id) is not None:
            logger.debug("Post %s already in feed; not re-inserting", post.id)
            return False
        self._posts.append(post)
        return True

    def _replace(self, post_id: str, **fields) -> Optional[Post]:
        for i, post in enumerate(self._posts):
            if post.id == post_id:
                self._posts[i] = post.model_copy(update=fields)
                return self._posts[i]
        logger.debug("Post %s not in feed; ignoring update of %s", post_id, ", ".join(fields))
        return None

    def apply_pin_result(self, post_id: str, updated: Optional[Post]) -> None:
        if updated is None:
            return
        if self._replace(post_id, is_pinned=updated.is_pinned) is None:
            return
        if updated.is_pinned:
            self._pinned.add(post_id)
        else:
            self._pinned.discard(post_id)

    def apply_reaction_result(self, post_id: str, reactions: dict[str, list[str]]) -> None:
        self._replace(post_id, reactions=dict(reactions))

    def apply_comment_result(self, post_id: str, comments: list[Comment]) -> None:
        self._replace(post_id, comments=list(comments))

    def apply_update_result(self, updated: Post) -> None:
        """Swap in an edited post, keeping its position in the feed."""
        for i, post in enumerate(self._posts):
            if post.id == updated.id:
                self._posts[i] = updated
                return

    def append(self, post: Post) -> None:
        """New posts go to the end of insertion order."""
        if self._insert(post) and post.is_pinned:
            self._pinned.add(post.id)

    def remove(self, post_id: str) -> None:
        self._posts = [p for p in self._posts if p.id != post_id]
        self._pinned.discard(post_id)
