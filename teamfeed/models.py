"""
SQLAlchemy ORM models.

Tables:
  users         — user profiles (display name, email, avatar)
  projects      — project workspaces (archivable)
  posts         — team feed entries; reactions stored as JSON emoji → user ids
  post_comments — append-only comments, ordered by position within a post
  team_agile    — agile records of a team
  agile_role    — roles defined for a team's agile process
  sprint_plan   — sprint plans of a team
  agile_member  — join rows linking an agile record to a user id
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamfeed.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    # Naive UTC with microseconds; rows created in the same second must still order
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    theme_color: Mapped[Optional[str]] = mapped_column(String(32))
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (Index("idx_projects_creator", "created_by"),)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    section_id: Mapped[Optional[str]] = mapped_column(String(36))
    title: Mapped[str] = mapped_column(String(50), nullable=False)
    # Rich-text HTML produced by the editor widget
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), default="post", nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # {emoji_key: [user_id, ...]}; always reassigned, never mutated in place
    reactions: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    comments = relationship(
        "Comment",
        back_populates="post",
        # Ties on position (concurrent appends) fall back to creation time, then id
        order_by=lambda: (Comment.position, Comment.created_at, Comment.id),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_posts_team_created", "team_id", "created_at"),
    )


class Comment(Base):
    __tablename__ = "post_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Insertion index within the post; comments are never reordered
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    post = relationship("Post", back_populates="comments", lazy="noload")

    __table_args__ = (Index("idx_comments_post", "post_id", "position"),)


class TeamAgile(Base):
    __tablename__ = "team_agile"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(32))
    start_on: Mapped[Optional[date]] = mapped_column(Date)
    end_on: Mapped[Optional[date]] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_team_agile_team", "team_id"),)


class AgileRole(Base):
    __tablename__ = "agile_role"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_agile_role_team", "team_id"),)


class SprintPlan(Base):
    __tablename__ = "sprint_plan"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    agile_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("team_agile.id"))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    goal: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_sprint_plan_team", "team_id"),)


class AgileMember(Base):
    __tablename__ = "agile_member"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    agile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("team_agile.id"), nullable=False
    )
    # Weak reference: looked up in users, never owned
    user_id: Mapped[Optional[str]] = mapped_column(String(36))
    role_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("agile_role.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_agile_member_agile", "agile_id", "created_at"),)
