from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


class IdMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)


class User(IdMixin, TimestampMixin, Base):
    __tablename__ = "tbl_users"

    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # Argon2 hash; null for identities authenticated by the external provider
    password: Mapped[Optional[str]] = mapped_column(Text)
    display_name: Mapped[Optional[str]] = mapped_column(Text)
    photo_url: Mapped[Optional[str]] = mapped_column(Text)
    provider: Mapped[str] = mapped_column(String(16), nullable=False, default="email")
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    theme: Mapped[str] = mapped_column(String(16), nullable=False, default="light")
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    subscription: Mapped[str] = mapped_column(String(16), nullable=False, default="free")

    projects: Mapped[list["Project"]] = relationship("Project", back_populates="user")


class Project(IdMixin, TimestampMixin, Base):
    __tablename__ = "tbl_projects"
    __table_args__ = (Index("ix_projects_user", "user_id"),)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    theme: Mapped[str] = mapped_column(Text, nullable=False, default="modern")
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    generated_code: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    assets: Mapped[Optional[Any]] = mapped_column(JSONType)
    settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)

    user: Mapped["User"] = relationship("User", back_populates="projects")
    generations: Mapped[list["Generation"]] = relationship(
        "Generation", back_populates="project", passive_deletes=True
    )


class Generation(IdMixin, CreatedAtMixin, Base):
    __tablename__ = "tbl_generations"
    __table_args__ = (Index("ix_generations_project", "project_id"),)

    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tbl_projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    generated_code: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    project: Mapped["Project"] = relationship("Project", back_populates="generations")


class Subscription(IdMixin, TimestampMixin, Base):
    __tablename__ = "tbl_subscriptions"
    __table_args__ = (Index("ix_subscriptions_user", "user_id"),)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    plan: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paypal_subscription_id: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
