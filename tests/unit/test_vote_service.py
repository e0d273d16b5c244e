"""Unit tests for vote_service module."""

import pytest

from tasklevel.core.clock import to_iso
from tasklevel.core.config import constants
from tasklevel.core.db_client import RecordNotFoundError
from tasklevel.core.errors import InvalidListStateError
from tasklevel.domain.vote import VoteAction, VoteValue
from tasklevel.services import vote_service
from tests.unit.mocks import NOW, make_list


@pytest.fixture
async def public_list(patched_db, owner_profile, voter_profile):
    task_list, _ = await make_list(patched_db, task_states=(True,), is_public=True)
    return task_list


@pytest.mark.unit
class TestCastVote:
    """Tests for cast_vote."""

    async def test_first_vote_is_added_and_owner_notified(self, patched_db, mock_push, other_session, public_list):
        result = await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.REAL)

        assert result.action is VoteAction.ADDED
        [vote] = patched_db.records("votes")
        assert vote["user_id"] == "voter-1"
        assert vote["vote"] == 1
        mock_push.assert_awaited_once()
        assert mock_push.call_args.kwargs["user_ids"] == ["owner-1"]
        payload = mock_push.call_args.kwargs["payload"]
        assert payload.tag == "vote-real"
        assert "voter" in payload.body

    async def test_same_vote_twice_withdraws_it(self, patched_db, mock_push, other_session, public_list):
        await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.FAKE)

        result = await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.FAKE)

        assert result.action is VoteAction.REMOVED
        assert patched_db.records("votes") == []
        assert mock_push.await_count == 1

    async def test_opposite_vote_flips_in_place(self, patched_db, mock_push, other_session, public_list):
        await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.REAL)

        result = await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.FAKE)

        assert result.action is VoteAction.UPDATED
        [vote] = patched_db.records("votes")
        assert vote["vote"] == -1
        assert mock_push.call_args.kwargs["payload"].tag == "vote-fake"

    async def test_owner_vote_does_not_notify(self, patched_db, mock_push, session, public_list):
        result = await vote_service.cast_vote(session=session, list_id=public_list["id"], value=VoteValue.REAL)

        assert result.action is VoteAction.ADDED
        mock_push.assert_not_called()

    async def test_private_list_cannot_be_voted(self, patched_db, other_session, owner_profile):
        task_list, _ = await make_list(patched_db, task_states=(True,))

        with pytest.raises(InvalidListStateError):
            await vote_service.cast_vote(session=other_session, list_id=task_list["id"], value=VoteValue.REAL)

        assert patched_db.records("votes") == []

    async def test_unknown_list_raises(self, patched_db, other_session):
        with pytest.raises(RecordNotFoundError):
            await vote_service.cast_vote(session=other_session, list_id="missing", value=VoteValue.REAL)


@pytest.mark.unit
class TestVoteTally:
    """Tests for get_vote_tally."""

    async def test_counts_and_own_vote(self, patched_db, mock_push, session, other_session, public_list):
        await vote_service.cast_vote(session=other_session, list_id=public_list["id"], value=VoteValue.REAL)
        await vote_service.cast_vote(session=session, list_id=public_list["id"], value=VoteValue.FAKE)

        tally = await vote_service.get_vote_tally(public_list["id"], profile_id="voter-1")

        assert (tally.real, tally.fake) == (1, 1)
        assert tally.user_vote is VoteValue.REAL

    async def test_anonymous_tally_has_no_own_vote(self, patched_db, public_list):
        tally = await vote_service.get_vote_tally(public_list["id"])

        assert (tally.real, tally.fake, tally.user_vote) == (0, 0, None)

    async def test_counts_beyond_one_page(self, patched_db, monkeypatch, public_list):
        monkeypatch.setattr(constants, "MAX_PER_PAGE_LIMIT", 2)
        for i, value in enumerate([1, 1, 1, -1, -1]):
            await patched_db.create_record(
                collection="votes",
                data={"list_id": public_list["id"], "user_id": f"p{i}", "vote": value, "created_at": to_iso(NOW)},
            )

        tally = await vote_service.get_vote_tally(public_list["id"], profile_id="p4")

        assert (tally.real, tally.fake) == (3, 2)
        assert tally.user_vote is VoteValue.FAKE
