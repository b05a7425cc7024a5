"""
rally.database.models — SQLAlchemy 2.0 Data Models
===================================================

Tables:
- users           — Members, keyed internally by id and externally by
                    the identity provider's subject (``external_id``)
- campaigns       — Campaigns, addressed by a unique human-readable slug
- actions         — Steps belonging to a campaign (opaque UI ``config``)
- user_campaigns  — User ↔ Campaign membership with opaque ``data``
                    (e.g. the member's motive); one row per user at most
- user_actions    — Per-user completion state of an action in a campaign

Navigation between these tables is declared once, in
:mod:`rally.engine.graph`.  The models only carry foreign keys and
constraints; there are no ``relationship()`` attributes to keep in sync.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Rally ORM models."""


# ---------------------------------------------------------------------------
# Users — one row per member
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    username: Mapped[str | None] = mapped_column(String(100), default=None)
    name: Mapped[str | None] = mapped_column(String(200), default=None)
    avatar_url: Mapped[str | None] = mapped_column(Text, default=None)
    external_id: Mapped[str | None] = mapped_column(String(128), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_users_external_id"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------
class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("slug", name="uq_campaigns_slug"),
    )

    def __repr__(self) -> str:
        return f"<Campaign id={self.id} slug={self.slug!r}>"


# ---------------------------------------------------------------------------
# Actions — steps of a campaign
# ---------------------------------------------------------------------------
class Action(Base):
    """A single step a member can take within a campaign.

    ``type`` names the UI to render and ``config`` holds everything that
    UI needs.  Neither is interpreted server-side.
    """
    __tablename__ = "actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    config: Mapped[dict | None] = mapped_column(JSONB, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_actions_campaign_id", "campaign_id"),
    )

    def __repr__(self) -> str:
        return f"<Action id={self.id} campaign={self.campaign_id} title={self.title!r}>"


# ---------------------------------------------------------------------------
# UserCampaign — membership join with payload
# ---------------------------------------------------------------------------
class UserCampaign(Base):
    """Membership of a user in a campaign.

    ``uq_user_campaigns_user`` is what makes "at most one campaign per
    user" hold under concurrent enrollment; the service-level check only
    avoids the round-trip in the common case.
    """
    __tablename__ = "user_campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    data: Mapped[dict | None] = mapped_column(JSONB, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_campaigns_user"),
        Index("ix_user_campaigns_campaign", "campaign_id"),
    )

    def __repr__(self) -> str:
        return f"<UserCampaign user={self.user_id} campaign={self.campaign_id}>"


# ---------------------------------------------------------------------------
# UserAction — per-user completion state
# ---------------------------------------------------------------------------
class UserAction(Base):
    __tablename__ = "user_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("actions.id", ondelete="CASCADE"), nullable=False
    )
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "action_id", "campaign_id",
            name="uq_user_actions_user_action_campaign",
        ),
        Index("ix_user_actions_user_campaign", "user_id", "campaign_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserAction id={self.id} user={self.user_id} "
            f"action={self.action_id} completed={self.completed}>"
        )
