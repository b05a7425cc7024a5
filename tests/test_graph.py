"""
tests/test_graph.py — Relationship Graph Tests
================================================
"""

from __future__ import annotations

import pytest

from rally.database.models import Action, Campaign, User, UserAction, UserCampaign
from rally.engine.graph import EDGES, Cardinality, edges_of, get_edge, plan_path
from rally.errors import InvalidPath


class TestEdgeDeclarations:
    def test_edge_set_is_closed(self):
        assert {str(e) for e in EDGES} == {
            "User.campaigns",
            "Campaign.actions",
            "User.user_actions",
            "UserAction.action",
        }

    def test_user_campaigns_goes_through_membership(self):
        edge = get_edge(User, "campaigns")
        assert edge.target is Campaign
        assert edge.cardinality is Cardinality.MANY
        assert edge.through is UserCampaign
        assert edge.is_many_to_many
        assert edge.payload == "data"

    def test_user_action_to_action_is_single(self):
        edge = get_edge(UserAction, "action")
        assert edge.target is Action
        assert edge.cardinality is Cardinality.ONE
        assert not edge.is_many_to_many

    def test_edges_of_leaf_entity_is_empty(self):
        assert edges_of(Action) == ()
        assert {e.name for e in edges_of(User)} == {"campaigns", "user_actions"}


class TestPlanPath:
    def test_chains_segments(self):
        edges = plan_path(User, ["campaigns", "actions"])
        assert [e.target for e in edges] == [Campaign, Action]

    def test_empty_path_plans_nothing(self):
        assert plan_path(Campaign, []) == []

    def test_segment_must_start_at_previous_target(self):
        with pytest.raises(InvalidPath, match="User has no edge 'actions'"):
            plan_path(User, ["actions"])

    def test_unknown_edge_lists_known_ones(self):
        with pytest.raises(InvalidPath) as exc_info:
            get_edge(Campaign, "members")
        assert exc_info.value.details["known"] == ["actions"]

    def test_bare_string_path_rejected(self):
        with pytest.raises(InvalidPath):
            plan_path(Campaign, "actions")
