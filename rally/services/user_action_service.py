"""
rally.services.user_action_service — UserAction Issuing
========================================================

Hands an action to a user within a campaign by inserting a
``user_actions`` row.  Every reference is checked up front so a bad id
is reported as :class:`ConstraintViolation` and nothing is written; the
database's foreign keys and unique constraint back the same rules.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rally.database.models import Action, Campaign, User, UserAction
from rally.errors import ConstraintViolation

logger = logging.getLogger(__name__)


def issue_user_action(
    engine: Engine,
    *,
    user_id: int,
    action_id: int,
    campaign_id: int,
) -> UserAction:
    """Create an (uncompleted) UserAction and return it detached.

    Raises :class:`ConstraintViolation` when the user, action or campaign
    doesn't exist, when the action belongs to another campaign, or when
    the user already holds this action in this campaign.
    """
    with Session(engine, expire_on_commit=False) as session:
        missing = {
            name: key
            for name, model, key in (
                ("user_id", User, user_id),
                ("action_id", Action, action_id),
                ("campaign_id", Campaign, campaign_id),
            )
            if session.get(model, key) is None
        }
        if missing:
            raise ConstraintViolation(
                "UserAction references rows that do not exist",
                details={"missing": missing},
            )

        action = session.get(Action, action_id)
        if action.campaign_id != campaign_id:
            raise ConstraintViolation(
                f"Action {action_id} does not belong to campaign {campaign_id}",
                details={"action_id": action_id, "campaign_id": campaign_id},
            )

        user_action = UserAction(
            user_id=user_id,
            action_id=action_id,
            campaign_id=campaign_id,
            completed=False,
        )
        session.add(user_action)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConstraintViolation(
                f"User {user_id} already holds action {action_id} in campaign {campaign_id}",
                details={
                    "user_id": user_id,
                    "action_id": action_id,
                    "campaign_id": campaign_id,
                },
            ) from exc

        session.refresh(user_action)
        session.expunge(user_action)

    logger.info(
        "Issued action %d to user %d in campaign %d (user_action %d).",
        action_id, user_id, campaign_id, user_action.id,
    )
    return user_action
