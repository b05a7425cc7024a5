"""
rally.api.routes.users — Caller profile & per-user reads
==========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from rally.api.deps import get_current_user, get_engine
from rally.api.views import node_dict, progress_dict
from rally.database.engine import run_db
from rally.database.models import User
from rally.services import query_service

router = APIRouter(tags=["users"])


@router.get("/me")
async def current_user(
    user: User = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """The caller's profile, with campaign memberships."""
    node = await run_db(query_service.user_profile, engine, user.id)
    return node_dict(node)


@router.get("/users/{user_id}/campaigns/{campaign_id}/actions")
async def user_campaigns_actions(
    user_id: int,
    campaign_id: int,
    engine: Engine = Depends(get_engine),
):
    """Actions of a campaign the user is enrolled in (empty otherwise)."""
    nodes = await run_db(query_service.user_campaigns_actions, engine, user_id, campaign_id)
    return [node_dict(n) for n in nodes]


@router.get("/users/{user_id}/campaigns/{campaign_id}/progress")
async def user_action_overview(
    user_id: int,
    campaign_id: int,
    engine: Engine = Depends(get_engine),
):
    """Every action of the campaign with the user's completion state."""
    rows = await run_db(query_service.user_action_overview, engine, user_id, campaign_id)
    return [progress_dict(p) for p in rows]


@router.get("/users/{user_id}/actions")
async def user_actions(
    user_id: int,
    campaign_id: int | None = Query(None),
    engine: Engine = Depends(get_engine),
):
    """The user's actions, optionally limited to one campaign."""
    nodes = await run_db(query_service.user_actions, engine, user_id, campaign_id)
    return [node_dict(n) for n in nodes]
