"""
rally.services.enrollment_service — Campaign Enrollment
========================================================

Creates the User ↔ Campaign membership.  A user belongs to at most one
campaign; asking again is answered with ``ok=False`` rather than an
error, so callers can show "already enrolled" without parsing messages.

The write path is check-then-insert:
  1. Verify the user and campaign exist (missing → ConstraintViolation)
  2. Look for an existing membership (found → ok=False, no write)
  3. Insert the membership row with ``data={"motive": …}``
  4. Commit

Two concurrent calls can both pass step 2.  The unique constraint on
``user_campaigns.user_id`` rejects the second insert; the loser re-reads
and reports ``ok=False`` like any other already-enrolled caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rally.database.models import Campaign, User
from rally.engine.graph import get_edge
from rally.errors import ConstraintViolation

logger = logging.getLogger(__name__)

# The membership edge tells us which join table and columns to use.
MEMBERSHIP = get_edge(User, "campaigns")


@dataclass(frozen=True, slots=True)
class EnrollmentResult:
    """Outcome of :func:`enroll`.  ``ok`` is False when already enrolled."""

    ok: bool
    membership_id: int | None = None


def _membership_ids(session: Session, user_id: int) -> list[int]:
    through = MEMBERSHIP.through
    return list(session.scalars(
        select(through.id).where(getattr(through, MEMBERSHIP.target_key) == user_id)
    ).all())


def enroll(engine: Engine, user_id: int, campaign_id: int, motive: str) -> EnrollmentResult:
    """Enroll *user_id* into *campaign_id*, recording *motive*.

    Returns ``EnrollmentResult(ok=True)`` when a membership was created and
    ``EnrollmentResult(ok=False)`` when the user already has one (in any
    campaign).  Raises :class:`ConstraintViolation` if the user or the
    campaign doesn't exist.
    """
    with Session(engine, expire_on_commit=False) as session:
        if session.get(User, user_id) is None:
            raise ConstraintViolation(
                f"Cannot enroll: user {user_id} does not exist",
                details={"user_id": user_id},
            )
        if session.get(Campaign, campaign_id) is None:
            raise ConstraintViolation(
                f"Cannot enroll: campaign {campaign_id} does not exist",
                details={"campaign_id": campaign_id},
            )

        if _membership_ids(session, user_id):
            logger.info(
                "User %d already enrolled — skipping enrollment into campaign %d.",
                user_id, campaign_id,
            )
            return EnrollmentResult(ok=False)

        membership = MEMBERSHIP.through(**{
            MEMBERSHIP.target_key: user_id,
            MEMBERSHIP.through_target_key: campaign_id,
            MEMBERSHIP.payload: {"motive": motive},
        })
        session.add(membership)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if _membership_ids(session, user_id):
                logger.warning(
                    "Concurrent enrollment for user %d won elsewhere; "
                    "campaign %d not added.",
                    user_id, campaign_id,
                )
                return EnrollmentResult(ok=False)
            raise ConstraintViolation(
                f"Enrollment of user {user_id} into campaign {campaign_id} was rejected",
                details={"user_id": user_id, "campaign_id": campaign_id},
            ) from exc

        logger.info(
            "Enrolled user %d into campaign %d (membership %d).",
            user_id, campaign_id, membership.id,
        )
        return EnrollmentResult(ok=True, membership_id=membership.id)
