"""
rally.api.views — Response Shapes
==================================

Field names follow the public data model: users and memberships use
``snake_case`` (``avatar_url``, ``campaign_id``), actions and user
actions use ``camelCase`` (``campaignId``, ``actionId``).
"""

from __future__ import annotations

from collections.abc import Callable

from rally.database.models import Action, Base, Campaign, User, UserAction, UserCampaign
from rally.engine.traversal import Node
from rally.services.query_service import ActionProgress


def user_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "username": u.username,
        "name": u.name,
        "avatar_url": u.avatar_url,
        "external_id": u.external_id,
    }


def campaign_dict(c: Campaign) -> dict:
    return {"id": c.id, "slug": c.slug}


def action_dict(a: Action) -> dict:
    return {
        "id": a.id,
        "campaignId": a.campaign_id,
        "title": a.title,
        "description": a.description,
        "type": a.type,
        "config": a.config,
    }


def membership_dict(m: UserCampaign) -> dict:
    return {
        "id": m.id,
        "user_id": m.user_id,
        "campaign_id": m.campaign_id,
        "data": m.data,
    }


def user_action_dict(ua: UserAction) -> dict:
    return {
        "id": ua.id,
        "userId": ua.user_id,
        "actionId": ua.action_id,
        "campaignId": ua.campaign_id,
        "completed": ua.completed,
    }


def progress_dict(p: ActionProgress) -> dict:
    return {
        "actionId": p.action_id,
        "userActionId": p.user_action_id,
        "campaignId": p.campaign_id,
        "title": p.title,
        "description": p.description,
        "type": p.type,
        "config": p.config,
        "completed": p.completed,
    }


_RENDERERS: dict[type[Base], Callable[..., dict]] = {
    User: user_dict,
    Campaign: campaign_dict,
    Action: action_dict,
    UserCampaign: membership_dict,
    UserAction: user_action_dict,
}


def render_row(row: Base) -> dict:
    return _RENDERERS[type(row)](row)


def node_dict(node: Node) -> dict:
    """Render a traversal tree with the public field names."""
    return node.to_dict(render_row)
