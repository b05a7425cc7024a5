"""
rally.api.routes.campaigns — Campaign listing & enrollment
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from rally.api.deps import get_config, get_current_user, get_engine
from rally.api.views import node_dict
from rally.config import RallyConfig
from rally.database.engine import run_db
from rally.database.models import User
from rally.services import query_service
from rally.services.enrollment_service import enroll
from rally.services.identity_service import get_campaign_by_slug

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


class EnrollmentBody(BaseModel):
    motive: str = Field(min_length=1)


@router.get("")
async def list_campaigns(engine: Engine = Depends(get_engine)):
    """All campaigns alongside their actions."""
    nodes = await run_db(query_service.list_campaigns, engine)
    return [node_dict(n) for n in nodes]


@router.get("/current")
async def current_campaign(
    engine: Engine = Depends(get_engine),
    cfg: RallyConfig = Depends(get_config),
):
    """The campaign this deployment serves, with its actions."""
    node = await run_db(query_service.current_campaign, engine, cfg.campaign_slug)
    return node_dict(node)


@router.post("/current/members")
async def add_user_to_campaign(
    body: EnrollmentBody,
    user: User = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: RallyConfig = Depends(get_config),
):
    """Enroll the caller into the current campaign.

    ``{"ok": false}`` means the caller already belongs to a campaign.
    """
    campaign = await run_db(get_campaign_by_slug, engine, cfg.campaign_slug)
    result = await run_db(enroll, engine, user.id, campaign.id, body.motive)
    return {"ok": result.ok}
