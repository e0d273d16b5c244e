"""Community Real/Fake votes on public lists."""

import logging

from tasklevel.core import db_client
from tasklevel.core.clock import to_iso, utc_now
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.errors import InvalidListStateError
from tasklevel.core.logging import span
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import TaskList
from tasklevel.domain.vote import Vote, VoteAction, VoteValue
from tasklevel.models.service_models import VoteResult, VoteTally
from tasklevel.services import notification_service


logger = logging.getLogger(__name__)


async def _get_public_list(list_id: str) -> TaskList:
    task_list = TaskList(**await db_client.get_record(collection="lists", record_id=list_id))
    if not task_list.is_public:
        msg = f"List {list_id} is not public"
        raise InvalidListStateError(msg)
    return task_list


async def _get_vote(*, list_id: str, profile_id: str) -> Vote | None:
    record = await db_client.get_first_record(
        collection="votes",
        filter_query=f'list_id = "{sanitize_param(list_id)}" && user_id = "{sanitize_param(profile_id)}"',
    )
    return Vote(**record) if record else None


async def cast_vote(*, session: Session, list_id: str, value: VoteValue) -> VoteResult:
    """Cast, change or withdraw the session profile's vote on a public list.

    Voting the same value twice withdraws the vote; voting the other value
    flips it. New and changed votes notify the list owner unless they voted
    on their own list.

    Args:
        session: Voting profile
        list_id: Public list being judged
        value: REAL or FAKE

    Returns:
        VoteResult with the action taken

    Raises:
        db_client.RecordNotFoundError: If the list does not exist
        InvalidListStateError: If the list is not public
    """
    with span("vote_service.cast_vote"):
        value = VoteValue(value)
        task_list = await _get_public_list(list_id)
        existing = await _get_vote(list_id=list_id, profile_id=session.profile_id)

        if existing is None:
            await db_client.create_record(
                collection="votes",
                data={
                    "list_id": list_id,
                    "user_id": session.profile_id,
                    "vote": int(value),
                    "created_at": to_iso(utc_now()),
                },
            )
            action = VoteAction.ADDED
        elif existing.vote == value:
            await db_client.delete_record(collection="votes", record_id=existing.id)
            action = VoteAction.REMOVED
        else:
            await db_client.update_record(collection="votes", record_id=existing.id, data={"vote": int(value)})
            action = VoteAction.UPDATED

        logger.info("Vote %s (%s) by profile=%s on list %s", action, value.name, session.profile_id, list_id)

        if action is not VoteAction.REMOVED and task_list.user_id != session.profile_id:
            await _notify_owner(session=session, task_list=task_list, value=value)

        return VoteResult(list_id=list_id, action=action, vote=value)


async def _notify_owner(*, session: Session, task_list: TaskList, value: VoteValue) -> None:
    try:
        voter = await db_client.get_record(collection="profiles", record_id=session.profile_id)
        voter_name = voter.get("username") or "Someone"
    except db_client.RecordNotFoundError:
        voter_name = "Someone"

    template = notification_service.new_real_vote if value is VoteValue.REAL else notification_service.new_fake_vote
    await notification_service.notify(
        target_profile_id=task_list.user_id,
        payload=template(voter_name=voter_name, list_title=task_list.title, list_id=task_list.id),
    )


async def get_vote_tally(list_id: str, *, profile_id: str | None = None) -> VoteTally:
    """Real and Fake counts for a list, plus the given profile's own vote if any."""
    with span("vote_service.get_vote_tally"):
        by_list = f'list_id = "{sanitize_param(list_id)}"'
        real = await db_client.count_records(
            collection="votes", filter_query=f'{by_list} && vote = "{VoteValue.REAL.value}"'
        )
        fake = await db_client.count_records(
            collection="votes", filter_query=f'{by_list} && vote = "{VoteValue.FAKE.value}"'
        )
        own = await _get_vote(list_id=list_id, profile_id=profile_id) if profile_id else None
        return VoteTally(list_id=list_id, real=real, fake=fake, user_vote=own.vote if own else None)
