"""
rally.services.identity_service — Caller & Current Campaign Lookup
===================================================================

Turns a verified caller identity (the token's subject plus profile
claims) into a ``users`` row, creating it on first contact, and resolves
the configured "current" campaign.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rally.database.models import Campaign, User
from rally.errors import NotFound

logger = logging.getLogger(__name__)

# Token claims copied onto the User row.
PROFILE_CLAIMS = ("email", "username", "name", "avatar_url")


def get_or_create_user(
    engine: Engine,
    external_id: str,
    claims: Mapping[str, Any] | None = None,
) -> User:
    """Fetch the User for *external_id*, inserting it on first contact.

    Profile fields present in *claims* are copied on creation and
    refreshed on later calls when they change.
    """
    claims = claims or {}
    profile = {k: claims[k] for k in PROFILE_CLAIMS if claims.get(k) is not None}

    with Session(engine, expire_on_commit=False) as session:
        user = session.scalar(select(User).where(User.external_id == external_id))
        if user is None:
            user = User(external_id=external_id, **profile)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # Another request created the same caller first.
                session.rollback()
                user = session.scalar(select(User).where(User.external_id == external_id))
                if user is None:
                    raise
                logger.warning(
                    "Concurrent first contact for %s, using user %d.", external_id, user.id
                )
            else:
                logger.info("Created user %d for external id %s.", user.id, external_id)
        else:
            changed = False
            for key, value in profile.items():
                if getattr(user, key) != value:
                    setattr(user, key, value)
                    changed = True
            if changed:
                session.commit()
        return user


def get_campaign_by_slug(engine: Engine, slug: str) -> Campaign:
    """Return the campaign with *slug* or raise :class:`NotFound`."""
    with Session(engine) as session:
        campaign = session.scalar(select(Campaign).where(Campaign.slug == slug))
    if campaign is None:
        raise NotFound("Campaign", slug)
    return campaign
