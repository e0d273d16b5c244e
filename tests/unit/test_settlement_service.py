"""Unit tests for settlement_service module."""

from datetime import timedelta

import pytest

from tasklevel.core.clock import to_iso
from tasklevel.core.db_client import DatabaseError
from tasklevel.core.errors import InvalidListStateError
from tasklevel.domain.task_list import ListType
from tasklevel.services import settlement_service
from tests.unit.mocks import NOW, make_list


@pytest.mark.unit
class TestCalculatePoints:
    """Tests for calculate_points."""

    @pytest.mark.parametrize(
        ("list_type", "public", "private"),
        [(ListType.DAILY, 10, 5), (ListType.WEEKLY, 30, 15), (ListType.MONTHLY, 100, 50)],
    )
    def test_public_full_private_half(self, list_type, public, private):
        assert settlement_service.calculate_points(list_type, is_public=True) == public
        assert settlement_service.calculate_points(list_type, is_public=False) == private

    def test_invalid_type_raises(self):
        with pytest.raises(ValueError):
            settlement_service.calculate_points("yearly", is_public=True)


@pytest.mark.unit
class TestMakePublic:
    """Tests for make_public."""

    async def test_completed_weekly_awards_thirty(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="weekly", task_states=(True, True))

        result = await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        assert result.made_public
        assert result.points_awarded == 30
        assert result.points_balance == 30
        assert result.hidden
        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["is_public"] is True
        assert stored["settled_at"] == to_iso(NOW)
        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 30

    async def test_expired_uncompleted_list_is_published_without_points(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(
            patched_db,
            task_states=(True, False),
            created_at=NOW - timedelta(days=1),
            expires_at=NOW - timedelta(hours=1),
        )

        result = await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        assert result.points_awarded == 0
        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["is_public"] is True
        assert stored["settled_at"] is None
        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 0

    async def test_open_list_cannot_be_published(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(True, False), expires_at=NOW + timedelta(hours=24))

        with pytest.raises(InvalidListStateError, match="still open"):
            await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["is_public"] is False

    async def test_points_failure_rolls_back_publication(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="daily", task_states=(True,))
        patched_db.fail_on("increment", "profiles")

        with pytest.raises(DatabaseError):
            await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["is_public"] is False
        assert stored["settled_at"] is None

    async def test_already_public_list_is_rejected(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(True,), is_public=True)

        with pytest.raises(InvalidListStateError):
            await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 0

    async def test_list_kept_private_cannot_be_published_for_more_points(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="weekly", task_states=(True,))
        await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        with pytest.raises(InvalidListStateError, match="already awarded"):
            await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 15

    async def test_other_profiles_cannot_publish(self, patched_db, other_session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(True,))

        with pytest.raises(PermissionError):
            await settlement_service.make_public(session=other_session, list_id=task_list["id"], now=NOW)


@pytest.mark.unit
class TestHideList:
    """Tests for hide_list."""

    async def test_completed_weekly_awards_fifteen(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="weekly", task_states=(True, True))

        result = await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        assert not result.made_public
        assert result.points_awarded == 15
        assert result.hidden
        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 15
        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["is_public"] is False
        assert stored["settled_at"] == to_iso(NOW)

    async def test_expired_uncompleted_list_is_hidden_without_writes(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(
            patched_db,
            task_states=(False,),
            created_at=NOW - timedelta(days=1),
            expires_at=NOW - timedelta(minutes=5),
        )
        patched_db.calls.clear()

        result = await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        assert result.points_awarded == 0
        assert result.hidden
        assert result.list_id == task_list["id"]
        assert all(operation == "get" for operation, _ in patched_db.calls)

    async def test_open_list_cannot_be_hidden(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(False,), expires_at=NOW + timedelta(hours=4))

        with pytest.raises(InvalidListStateError, match="still open"):
            await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

    async def test_published_list_cannot_also_be_kept_private(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="weekly", task_states=(True,))
        await settlement_service.make_public(session=session, list_id=task_list["id"], now=NOW)

        with pytest.raises(InvalidListStateError, match="already public"):
            await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 30

    async def test_repeated_hide_awards_once(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="monthly", task_states=(True,))

        await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)
        for _ in range(2):
            with pytest.raises(InvalidListStateError):
                await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        profile = await patched_db.get_record(collection="profiles", record_id="owner-1")
        assert profile["points"] == 50

    async def test_points_failure_leaves_list_unsettled(self, patched_db, session, owner_profile):
        task_list, _ = await make_list(patched_db, list_type="daily", task_states=(True,))
        patched_db.fail_on("increment", "profiles")

        with pytest.raises(DatabaseError):
            await settlement_service.hide_list(session=session, list_id=task_list["id"], now=NOW)

        stored = await patched_db.get_record(collection="lists", record_id=task_list["id"])
        assert stored["settled_at"] is None

    async def test_monthly_hidden_then_balance_accumulates(self, patched_db, session, owner_profile):
        first, _ = await make_list(patched_db, list_type="monthly", task_states=(True,))
        second, _ = await make_list(patched_db, list_type="daily", task_states=(True,))

        await settlement_service.hide_list(session=session, list_id=first["id"], now=NOW)
        result = await settlement_service.make_public(session=session, list_id=second["id"], now=NOW)

        assert result.points_balance == 60

    async def test_other_profiles_cannot_hide(self, patched_db, other_session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(True,))

        with pytest.raises(PermissionError):
            await settlement_service.hide_list(session=other_session, list_id=task_list["id"], now=NOW)
