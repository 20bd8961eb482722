"""
User profile endpoints:
  POST /users          — create a user profile
  GET  /users?ids=a,b  — batch-fetch profiles (single IN query)
  GET  /users/{id}     — fetch a user profile
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.database import get_db
from teamfeed.errors import TeamFeedError, error_to_http
from teamfeed.models import User
from teamfeed.repository import Collection
from teamfeed.schemas import UserCreate, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("create_user"):
        if body.email:
            existing = await db.execute(select(User).where(User.email == body.email))
            if existing.scalar_one_or_none():
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Email '{body.email}' already registered",
                )
        try:
            user = await Collection(db, User).create(**body.model_dump())
        except TeamFeedError as exc:
            raise error_to_http(exc) from exc

        logger.info("Created user %s (id=%s)", user.name, user.id)
        return user


@router.get("/", response_model=list[UserResponse])
async def list_users(
    ids: str = Query(..., description="Comma-separated user ids"),
    db: AsyncSession = Depends(get_db),
):
    user_ids = [i for i in (part.strip() for part in ids.split(",")) if i]
    try:
        return await Collection(db, User).in_(user_ids)
    except TeamFeedError as exc:
        raise error_to_http(exc) from exc


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
