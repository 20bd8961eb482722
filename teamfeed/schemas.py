"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.
The client SDK decodes API responses with the same response models.
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from teamfeed.config import settings


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# ──────────────────────────── Users ───────────────────────────────────────

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


# ──────────────────────────── Projects ────────────────────────────────────

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    theme_color: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    theme_color: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    theme_color: Optional[str]
    archived: bool
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ──────────────────────────── Posts ───────────────────────────────────────

class PostCreate(BaseModel):
    team_id: str
    title: str = Field(
        ...,
        min_length=settings.post_title_min_length,
        max_length=settings.post_title_max_length,
    )
    # Rich-text HTML from the editor widget
    description: Optional[str] = ""
    type: str = Field("post", pattern="^(post|announcement)$")
    section_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(
        None,
        min_length=settings.post_title_min_length,
        max_length=settings.post_title_max_length,
    )
    description: Optional[str] = None
    type: Optional[str] = Field(None, pattern="^(post|announcement)$")
    section_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, value):
        return _strip(value)


class CommentResponse(BaseModel):
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReactionRequest(BaseModel):
    emoji: str = Field(settings.default_reaction, min_length=1, max_length=64)


class PostResponse(BaseModel):
    id: str
    team_id: str
    section_id: Optional[str] = None
    title: str
    description: Optional[str] = ""
    type: str = "post"
    is_pinned: bool = False
    reactions: dict[str, list[str]] = Field(default_factory=dict)
    comments: list[CommentResponse] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReactionsResponse(BaseModel):
    post_id: str
    reactions: dict[str, list[str]]


class CommentsResponse(BaseModel):
    post_id: str
    comments: list[CommentResponse]


# ──────────────────────────── Agile ───────────────────────────────────────

class TeamAgileResponse(BaseModel):
    id: str
    team_id: str
    name: str
    status: Optional[str]
    start_on: Optional[date]
    end_on: Optional[date]
    created_at: datetime

    class Config:
        from_attributes = True


class AgileRoleResponse(BaseModel):
    id: str
    team_id: str
    name: str
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class SprintPlanResponse(BaseModel):
    id: str
    team_id: str
    agile_id: Optional[str]
    title: str
    goal: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class AgileMemberResponse(BaseModel):
    """An agile member row; profile fields are only present when enrichment succeeded."""
    id: str
    agile_id: str
    user_id: Optional[str]
    role_id: Optional[str] = None
    created_at: datetime
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
