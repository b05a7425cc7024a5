"""
rally.api.routes.user_actions — Completion updates
====================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from rally.api.deps import get_engine
from rally.api.views import user_action_dict
from rally.database.engine import run_db
from rally.services.completion_service import set_completion

router = APIRouter(prefix="/user-actions", tags=["user-actions"])


class CompletionBody(BaseModel):
    completed: bool


@router.patch("/{user_action_id}")
async def update_user_action(
    user_action_id: int,
    body: CompletionBody,
    engine: Engine = Depends(get_engine),
):
    row = await run_db(set_completion, engine, user_action_id, body.completed)
    return user_action_dict(row)
