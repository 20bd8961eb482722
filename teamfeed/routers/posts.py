"""
Team feed endpoints:
  GET    /teams/{team_id}/posts   — a team's posts, oldest first
  POST   /posts                   — create a post
  GET    /posts/{id}              — fetch a single post
  PATCH  /posts/{id}              — edit title / description / section / type
  DELETE /posts/{id}              — delete a post (comments cascade)
  POST   /posts/{id}/pin          — flip is_pinned, returns the post
  POST   /posts/{id}/reactions    — toggle the actor's reaction, returns the reactions map
  POST   /posts/{id}/comments     — append a comment, returns the full comment list

Every mutation is a single round trip and reports the server's final value
of the field it touched so clients can overwrite their local copy.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.actor import get_actor_id, require_actor_id
from teamfeed.database import get_db
from teamfeed.errors import TeamFeedError, error_to_http
from teamfeed.models import Comment, Post
from teamfeed.reactions import toggle_reaction
from teamfeed.repository import Collection
from teamfeed.schemas import (
    CommentCreate,
    CommentResponse,
    CommentsResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    ReactionRequest,
    ReactionsResponse,
)
from teamfeed.telemetry import POST_MUTATIONS_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


async def _get_post_or_404(db: AsyncSession, post_id: str) -> Post:
    post = await Collection(db, Post).get(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _failed(verb: str, exc: TeamFeedError) -> HTTPException:
    POST_MUTATIONS_TOTAL.labels(verb=verb, outcome="error").inc()
    logger.error("Post %s failed: %s", verb, exc)
    return error_to_http(exc)


@router.get("/teams/{team_id}/posts", response_model=list[PostResponse])
async def list_team_posts(team_id: str, db: AsyncSession = Depends(get_db)):
    try:
        posts = await Collection(db, Post).list(order_by="created_at", team_id=team_id)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc
    logger.debug("Team %s: %d posts", team_id, len(posts))
    return posts


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("create_post") as span:
        try:
            post = await Collection(db, Post).create(
                team_id=body.team_id,
                section_id=body.section_id,
                title=body.title,
                description=body.description or "",
                type=body.type,
                is_pinned=False,
                reactions={},
                created_by=actor_id,
            )
        except TeamFeedError as exc:
            raise _failed("create", exc) from exc

        span.set_attribute("post.id", post.id)
        span.set_attribute("post.team_id", post.team_id)
        POST_MUTATIONS_TOTAL.labels(verb="create", outcome="ok").inc()
        logger.info("Post created: %s in team %s by %s", post.id, post.team_id, actor_id)
        return post


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_post_or_404(db, post_id)


@router.patch("/posts/{post_id}", response_model=PostResponse)
async def update_post(post_id: str, body: PostUpdate, db: AsyncSession = Depends(get_db)):
    changes = body.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is None:
        raise HTTPException(status_code=400, detail="Title cannot be empty")

    with tracer.start_as_current_span("update_post"):
        await _get_post_or_404(db, post_id)
        try:
            post = await Collection(db, Post).update(post_id, **changes)
        except TeamFeedError as exc:
            raise _failed("update", exc) from exc

        POST_MUTATIONS_TOTAL.labels(verb="update", outcome="ok").inc()
        logger.info("Post %s updated (%s)", post_id, ", ".join(sorted(changes)) or "no fields")
        return post


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("delete_post"):
        try:
            deleted = await Collection(db, Post).delete(post_id)
        except TeamFeedError as exc:
            raise _failed("delete", exc) from exc
        if not deleted:
            raise HTTPException(status_code=404, detail="Post not found")

        POST_MUTATIONS_TOTAL.labels(verb="delete", outcome="ok").inc()
        logger.info("Post %s deleted", post_id)


@router.post("/posts/{post_id}/pin", response_model=PostResponse)
async def toggle_pin(post_id: str, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("toggle_pin") as span:
        post = await _get_post_or_404(db, post_id)
        try:
            post = await Collection(db, Post).update(post_id, is_pinned=not post.is_pinned)
        except TeamFeedError as exc:
            raise _failed("pin", exc) from exc

        span.set_attribute("post.is_pinned", post.is_pinned)
        POST_MUTATIONS_TOTAL.labels(verb="pin", outcome="ok").inc()
        logger.info("Post %s pinned=%s", post_id, post.is_pinned)
        return post


@router.post("/posts/{post_id}/reactions", response_model=ReactionsResponse)
async def react_to_post(
    post_id: str,
    body: ReactionRequest,
    actor_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Toggle the actor's reaction under `emoji`: present → removed, absent → added."""
    with tracer.start_as_current_span("react_to_post"):
        post = await _get_post_or_404(db, post_id)
        reactions = toggle_reaction(post.reactions, body.emoji, actor_id)
        try:
            post = await Collection(db, Post).update(post_id, reactions=reactions)
        except TeamFeedError as exc:
            raise _failed("react", exc) from exc

        POST_MUTATIONS_TOTAL.labels(verb="react", outcome="ok").inc()
        logger.debug("Post %s reaction %s toggled by %s", post_id, body.emoji, actor_id)
        return ReactionsResponse(post_id=post_id, reactions=post.reactions)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def comment_on_post(
    post_id: str,
    body: CommentCreate,
    actor_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("comment_on_post"):
        post = await _get_post_or_404(db, post_id)
        try:
            await Collection(db, Comment).create(
                post_id=post_id,
                author_id=actor_id,
                content=body.content,
                position=len(post.comments),
            )
            # Reload so the response carries the full, ordered thread
            await db.refresh(post, attribute_names=["comments"])
        except TeamFeedError as exc:
            raise _failed("comment", exc) from exc

        POST_MUTATIONS_TOTAL.labels(verb="comment", outcome="ok").inc()
        logger.info("Comment added to post %s by %s", post_id, actor_id)
        return CommentsResponse(
            post_id=post_id,
            comments=[CommentResponse.model_validate(c) for c in post.comments],
        )
