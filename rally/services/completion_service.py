"""
rally.services.completion_service — Action Completion Tracking
===============================================================
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from rally.database.models import UserAction
from rally.errors import NotFound

logger = logging.getLogger(__name__)


def set_completion(engine: Engine, user_action_id: int, completed: bool) -> UserAction:
    """Set ``completed`` on a UserAction and return the row as stored.

    Only ``completed`` is written.  The returned object is re-read after
    the commit and detached, so it is safe to use after the call.
    Raises :class:`NotFound` (without writing anything) for an unknown id.
    """
    with Session(engine, expire_on_commit=False) as session:
        user_action = session.get(UserAction, user_action_id)
        if user_action is None:
            raise NotFound("UserAction", user_action_id)

        previous = user_action.completed
        user_action.completed = completed
        session.commit()
        session.refresh(user_action)
        session.expunge(user_action)

    if previous != completed:
        logger.info(
            "UserAction %d completed: %s → %s", user_action_id, previous, completed
        )
    return user_action
