"""
rally.services.query_service — Named Read Operations
=====================================================

Each read the API exposes is a traversal over the relationship graph:

    list_campaigns           Campaign* → actions
    current_campaign         Campaign(slug) → actions
    user_profile             User → campaigns (with membership data)
    user_campaigns_actions   User → campaigns[id=…] → actions
    user_actions             User → user_actions[campaign_id=…?] → action
    user_action_overview     Campaign → actions, merged with the user's
                             user_actions in that campaign
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rally.database.models import Campaign, User
from rally.engine.traversal import Node, resolve, resolve_all
from rally.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionProgress:
    """One action of a campaign with the user's completion state."""

    action_id: int
    user_action_id: int | None
    campaign_id: int
    title: str
    description: str
    type: str
    config: dict[str, Any] | None
    completed: bool


def list_campaigns(engine: Engine) -> list[Node]:
    """Every campaign with its actions nested."""
    with Session(engine) as session:
        return resolve_all(session, Campaign, ["actions"])


def current_campaign(engine: Engine, slug: str) -> Node:
    """The campaign identified by *slug*, with its actions."""
    with Session(engine) as session:
        campaign_id = session.scalar(select(Campaign.id).where(Campaign.slug == slug))
        if campaign_id is None:
            raise NotFound("Campaign", slug)
        return resolve(session, Campaign, campaign_id, ["actions"])


def user_profile(engine: Engine, user_id: int) -> Node:
    """A user with the campaigns they belong to."""
    with Session(engine) as session:
        return resolve(session, User, user_id, ["campaigns"])


def user_campaigns_actions(engine: Engine, user_id: int, campaign_id: int) -> list[Node]:
    """Actions of *campaign_id*, reached through the user's membership.

    A user who isn't enrolled in *campaign_id* gets an empty list;
    enrollment is optional.  An unknown user raises :class:`NotFound`.
    """
    with Session(engine) as session:
        user = resolve(
            session, User, user_id, ["campaigns", "actions"],
            filters={"campaigns": {"id": campaign_id}},
        )
    campaigns = user.many("campaigns")
    if not campaigns:
        logger.debug("User %d is not enrolled in campaign %d.", user_id, campaign_id)
        return []
    return campaigns[0].many("actions")


def user_actions(engine: Engine, user_id: int, campaign_id: int | None = None) -> list[Node]:
    """The user's UserActions, each with its Action nested.

    Narrowed to one campaign when *campaign_id* is given.
    """
    filters = {"user_actions": {"campaign_id": campaign_id}} if campaign_id is not None else None
    with Session(engine) as session:
        user = resolve(session, User, user_id, ["user_actions", "action"], filters=filters)
    return user.many("user_actions")


def user_action_overview(engine: Engine, user_id: int, campaign_id: int) -> list[ActionProgress]:
    """Every action of *campaign_id* with the user's progress merged in.

    Actions the user hasn't been issued yet appear with
    ``user_action_id=None`` and ``completed=False``.
    """
    with Session(engine) as session:
        user = resolve(
            session, User, user_id, ["user_actions"],
            filters={"user_actions": {"campaign_id": campaign_id}},
        )
        campaign = resolve(session, Campaign, campaign_id, ["actions"])

    issued = {n.row.action_id: n.row for n in user.many("user_actions")}
    overview = []
    for node in campaign.many("actions"):
        action = node.row
        user_action = issued.get(action.id)
        overview.append(ActionProgress(
            action_id=action.id,
            user_action_id=user_action.id if user_action else None,
            campaign_id=action.campaign_id,
            title=action.title,
            description=action.description,
            type=action.type,
            config=action.config,
            completed=bool(user_action and user_action.completed),
        ))
    return overview
