"""Unit tests for push_subscription_service module."""

import pytest

from tasklevel.core.db_client import DatabaseError
from tasklevel.services import push_subscription_service


async def _save(session, endpoint: str = "https://push.example.com/abc"):
    return await push_subscription_service.save_subscription(
        session=session, endpoint=endpoint, p256dh_key="p256dh", auth_key="auth"
    )


@pytest.mark.unit
class TestSaveSubscription:
    """Tests for save_subscription."""

    async def test_saves_active_subscription(self, patched_db, session):
        subscription = await _save(session)

        assert subscription.user_id == "owner-1"
        assert subscription.is_active
        assert len(patched_db.records("push_subscriptions")) == 1

    async def test_replaces_previous_subscription(self, patched_db, session, other_session):
        await _save(session, "https://push.example.com/old")
        await _save(other_session, "https://push.example.com/other")

        await _save(session, "https://push.example.com/new")

        endpoints = sorted(r["endpoint"] for r in patched_db.records("push_subscriptions"))
        assert endpoints == ["https://push.example.com/new", "https://push.example.com/other"]

    async def test_failed_insert_keeps_previous_subscription(self, patched_db, session):
        await _save(session, "https://push.example.com/old")
        patched_db.fail_on("create", "push_subscriptions")

        with pytest.raises(DatabaseError):
            await _save(session, "https://push.example.com/new")

        [record] = patched_db.records("push_subscriptions")
        assert record["endpoint"] == "https://push.example.com/old"


@pytest.mark.unit
class TestSubscriptionLifecycle:
    """Tests for removal, lookup and deactivation."""

    async def test_remove(self, patched_db, session):
        await _save(session)

        removed = await push_subscription_service.remove_subscription(session=session)

        assert removed == 1
        assert patched_db.records("push_subscriptions") == []

    async def test_active_subscriptions_for_profiles(self, patched_db, session, other_session):
        mine = await _save(session)
        theirs = await _save(other_session)
        await push_subscription_service.deactivate_subscription(theirs.id)

        active = await push_subscription_service.get_active_subscriptions(["owner-1", "voter-1"])

        assert [s.id for s in active] == [mine.id]

    async def test_no_profiles_means_no_lookup(self, patched_db):
        assert await push_subscription_service.get_active_subscriptions([]) == []
        assert patched_db.calls == []
