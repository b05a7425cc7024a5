"""
tests/test_queries.py — Named Read Operation Tests
====================================================
"""

from __future__ import annotations

import pytest

from conftest import make_campaign, make_user
from rally.errors import NotFound
from rally.services import query_service
from rally.services.completion_service import set_completion
from rally.services.enrollment_service import enroll
from rally.services.user_action_service import issue_user_action


class TestListCampaigns:
    def test_every_campaign_with_its_actions(self, db_engine):
        spring_id, spring_actions = make_campaign(db_engine, "spring", n_actions=2)
        autumn_id, _ = make_campaign(db_engine, "autumn", n_actions=0)

        nodes = query_service.list_campaigns(db_engine)

        assert [n.row.id for n in nodes] == [spring_id, autumn_id]
        assert {a.row.id for a in nodes[0].many("actions")} == set(spring_actions)
        assert nodes[1].many("actions") == []

    def test_no_campaigns(self, db_engine):
        assert query_service.list_campaigns(db_engine) == []


class TestCurrentCampaign:
    def test_resolves_by_slug(self, db_engine):
        campaign_id, action_ids = make_campaign(db_engine, "spring")
        node = query_service.current_campaign(db_engine, "spring")
        assert node.row.id == campaign_id
        assert len(node.many("actions")) == len(action_ids)

    def test_unknown_slug(self, db_engine):
        with pytest.raises(NotFound):
            query_service.current_campaign(db_engine, "winter")


class TestUserCampaignsActions:
    def test_enrolled_user_gets_campaign_actions(self, db_engine):
        user_id = make_user(db_engine)
        campaign_id, action_ids = make_campaign(db_engine, "spring")
        make_campaign(db_engine, "autumn")
        enroll(db_engine, user_id, campaign_id, "support")

        actions = query_service.user_campaigns_actions(db_engine, user_id, campaign_id)

        assert {a.row.id for a in actions} == set(action_ids)

    def test_not_enrolled_in_that_campaign_is_empty(self, db_engine):
        user_id = make_user(db_engine)
        spring_id, _ = make_campaign(db_engine, "spring")
        autumn_id, _ = make_campaign(db_engine, "autumn")
        enroll(db_engine, user_id, spring_id, "support")

        assert query_service.user_campaigns_actions(db_engine, user_id, autumn_id) == []

    def test_never_enrolled_is_empty(self, db_engine):
        user_id = make_user(db_engine)
        campaign_id, _ = make_campaign(db_engine)
        assert query_service.user_campaigns_actions(db_engine, user_id, campaign_id) == []

    def test_unknown_user_is_not_found(self, db_engine):
        campaign_id, _ = make_campaign(db_engine)
        with pytest.raises(NotFound):
            query_service.user_campaigns_actions(db_engine, 999, campaign_id)


class TestUserActions:
    @pytest.fixture
    def seeded(self, db_engine) -> dict:
        user_id = make_user(db_engine)
        spring_id, spring_actions = make_campaign(db_engine, "spring")
        autumn_id, autumn_actions = make_campaign(db_engine, "autumn")
        for cid, aids in ((spring_id, spring_actions), (autumn_id, autumn_actions)):
            for aid in aids:
                issue_user_action(db_engine, user_id=user_id, action_id=aid, campaign_id=cid)
        return {"user_id": user_id, "spring": spring_id, "autumn": autumn_id}

    def test_all_without_campaign(self, db_engine, seeded):
        nodes = query_service.user_actions(db_engine, seeded["user_id"])
        assert len(nodes) == 4

    def test_filtered_by_campaign(self, db_engine, seeded):
        nodes = query_service.user_actions(db_engine, seeded["user_id"], seeded["autumn"])
        assert {n.row.campaign_id for n in nodes} == {seeded["autumn"]}
        assert len(nodes) == 2

    def test_each_carries_its_action(self, db_engine, seeded):
        for node in query_service.user_actions(db_engine, seeded["user_id"]):
            assert node.one("action").row.id == node.row.action_id

    def test_user_without_actions(self, db_engine):
        user_id = make_user(db_engine)
        assert query_service.user_actions(db_engine, user_id) == []


class TestUserActionOverview:
    def test_merges_progress_into_campaign_actions(self, db_engine):
        user_id = make_user(db_engine)
        campaign_id, action_ids = make_campaign(db_engine, n_actions=3)
        issued = issue_user_action(
            db_engine, user_id=user_id, action_id=action_ids[0], campaign_id=campaign_id
        )
        set_completion(db_engine, issued.id, True)
        issue_user_action(
            db_engine, user_id=user_id, action_id=action_ids[1], campaign_id=campaign_id
        )

        overview = query_service.user_action_overview(db_engine, user_id, campaign_id)

        assert [p.action_id for p in overview] == action_ids
        assert [p.completed for p in overview] == [True, False, False]
        assert overview[0].user_action_id == issued.id
        assert overview[1].user_action_id is not None
        assert overview[2].user_action_id is None
        assert overview[2].campaign_id == campaign_id
        assert overview[0].config == {"fields": ["field_0"]}

    def test_unknown_campaign(self, db_engine):
        user_id = make_user(db_engine)
        with pytest.raises(NotFound):
            query_service.user_action_overview(db_engine, user_id, 999)
