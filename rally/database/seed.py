"""
rally.database.seed — Campaign Seeder
======================================

Campaigns and their actions are authored administratively.  This seeder
is the in-repo way to put one in place (startup, fixtures, local dev).

Idempotent — the campaign is matched by slug and actions by title within
it; existing rows are never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rally.database.models import Action, Campaign

logger = logging.getLogger(__name__)


def seed_campaign(engine: Engine, slug: str, actions: Iterable[dict] = ()) -> int:
    """Ensure campaign *slug* exists with the given actions; return its id.

    Each entry of *actions* is a dict with ``title`` and ``type`` and,
    optionally, ``description`` and ``config``.
    """
    session = Session(engine)
    inserted = 0
    try:
        campaign = session.scalar(select(Campaign).where(Campaign.slug == slug))
        if campaign is None:
            campaign = Campaign(slug=slug)
            session.add(campaign)
            session.flush()
            logger.info("Seeded campaign '%s' (id=%d).", slug, campaign.id)

        existing_titles = set(
            session.scalars(
                select(Action.title).where(Action.campaign_id == campaign.id)
            ).all()
        )
        for spec in actions:
            if spec["title"] in existing_titles:
                continue
            session.add(Action(
                campaign_id=campaign.id,
                title=spec["title"],
                description=spec.get("description", ""),
                type=spec["type"],
                config=spec.get("config") or {},
            ))
            existing_titles.add(spec["title"])
            inserted += 1
        campaign_id = campaign.id
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d actions for campaign '%s'.", inserted, slug)
    return campaign_id
