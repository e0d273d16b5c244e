"""List service: creating lists with their tasks and reading them back."""

import logging
from collections.abc import Callable, Collection
from datetime import datetime, timedelta

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, to_iso, utc_now
from tasklevel.core.config import constants, settings
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.errors import InvalidListStateError
from tasklevel.core.expiration import calculate_expiration, is_list_resolved
from tasklevel.core.logging import span
from tasklevel.core.scheduler import DelayedJobScheduler, delayed_jobs
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import ListType, Stake, StakeKind, Task, TaskInput, TaskList
from tasklevel.domain.vote import VoteValue
from tasklevel.models.service_models import CreateListResult, PublicListEntry, ScheduledNotification
from tasklevel.services import notification_service


logger = logging.getLogger(__name__)

MSG_FILL_ALL_FIELDS = "Fill in all fields"
MSG_LIST_ERROR = "Error creating the list"
MSG_TASKS_ERROR = "Error creating the tasks"
MSG_CREATED = "List created"


class _TaskInsertError(Exception):
    """Wraps a task batch failure so the list insert can be told apart."""


def minimum_task_count(list_type: ListType | str) -> int:
    """Number of tasks a list of this type must start with (1 for unknown types)."""
    return constants.MIN_TASKS.get(str(list_type), constants.DEFAULT_MIN_TASKS)


def initial_task_inputs(list_type: ListType | str) -> list[TaskInput]:
    """Blank task inputs a client pre-fills for a new list of this type."""
    return [TaskInput(label=f"Task {i}", value="") for i in range(1, minimum_task_count(list_type) + 1)]


def _stake_text(rewards: list[Stake], kind: StakeKind) -> str:
    return next((stake.text for stake in rewards if stake.type == kind), "")


async def create_list(
    *,
    session: Session,
    list_type: ListType | str,
    tasks: list[TaskInput],
    rewards: list[Stake],
    expires_at: datetime | None = None,
    jobs: DelayedJobScheduler | None = None,
    now: datetime | None = None,
) -> CreateListResult:
    """Create a list and its tasks for the session's profile.

    The list row and every task row are written in one transaction, so a
    failed task batch leaves no list behind. Once committed, a check-in
    notification is scheduled a few minutes out; scheduling problems never
    affect the result.

    Args:
        session: Acting profile (becomes the owner)
        list_type: daily, weekly or monthly
        tasks: Task inputs in display order
        rewards: Reward and punishment entries (first of each kind is used)
        expires_at: Expiration override (defaults to the computed one)
        jobs: Deferred job scheduler (defaults to the application scheduler)
        now: Reference instant (defaults to the current time)

    Returns:
        CreateListResult with the new list id on success
    """
    with span("list_service.create_list"):
        if not list_type or list_type not in set(ListType) or any(not t.value.strip() for t in tasks):
            logger.info("Rejected list creation for profile=%s: missing fields", session.profile_id)
            return CreateListResult(success=False, message=MSG_FILL_ALL_FIELDS)

        list_type = ListType(list_type)
        now = ensure_utc(now or utc_now())
        expires_at = ensure_utc(expires_at) if expires_at else calculate_expiration(list_type, now=now)
        created_at = to_iso(now)

        list_data = {
            "user_id": session.profile_id,
            "title": f"Lista {list_type}",
            "type": list_type,
            "is_public": False,
            "is_completed": False,
            "reward": _stake_text(rewards, StakeKind.REWARD),
            "punishment": _stake_text(rewards, StakeKind.PUNISHMENT),
            "expires_at": to_iso(expires_at),
            "created_at": created_at,
        }

        try:
            async with db_client.transaction():
                list_record = await db_client.create_record(collection="lists", data=list_data)
                try:
                    await db_client.create_records(
                        collection="tasks",
                        items=[
                            {
                                "list_id": list_record["id"],
                                "description": task.value,
                                "is_completed": False,
                                "created_at": created_at,
                            }
                            for task in tasks
                        ],
                    )
                except Exception as e:
                    raise _TaskInsertError(str(e)) from e
        except _TaskInsertError:
            logger.exception("Task insert failed for profile=%s, list rolled back", session.profile_id)
            return CreateListResult(success=False, message=MSG_TASKS_ERROR)
        except Exception:
            logger.exception("List insert failed for profile=%s", session.profile_id)
            return CreateListResult(success=False, message=MSG_LIST_ERROR)

        list_id = list_record["id"]
        logger.info(
            "Created %s list %s for profile=%s with %d tasks",
            list_type,
            list_id,
            session.profile_id,
            len(tasks),
        )

        _schedule_check_in(session=session, list_type=list_type, list_id=list_id, now=now, jobs=jobs or delayed_jobs)

        return CreateListResult(success=True, message=MSG_CREATED, list_id=list_id, expires_at=list_data["expires_at"])


def _schedule_check_in(
    *, session: Session, list_type: ListType, list_id: str, now: datetime, jobs: DelayedJobScheduler
) -> None:
    delay = settings.list_reminder_delay_minutes
    job = ScheduledNotification(
        profile_id=session.profile_id,
        payload=notification_service.list_check_in(list_type=list_type, list_id=list_id, delay_minutes=delay),
    )
    try:
        jobs.schedule(run_at=now + timedelta(minutes=delay), job=job)
    except Exception:
        logger.exception("Failed to schedule check-in for list %s", list_id)


async def get_list(list_id: str) -> TaskList:
    """Fetch a list without its tasks.

    Raises:
        db_client.RecordNotFoundError: If the list does not exist
    """
    record = await db_client.get_record(collection="lists", record_id=list_id)
    return TaskList(**record)


async def get_tasks(list_id: str) -> list[Task]:
    records = await db_client.list_all_records(
        collection="tasks",
        filter_query=f'list_id = "{sanitize_param(list_id)}"',
    )
    return [Task(**record) for record in records]


async def get_list_with_tasks(list_id: str) -> TaskList:
    """Fetch a list with its tasks attached in creation order."""
    with span("list_service.get_list_with_tasks"):
        task_list = await get_list(list_id)
        task_list.tasks = await get_tasks(list_id)
        return task_list


async def get_lists_for_owner(owner_id: str) -> list[TaskList]:
    """All lists of a profile, newest first, with tasks attached."""
    with span("list_service.get_lists_for_owner"):
        records = await db_client.list_all_records(
            collection="lists",
            filter_query=f'user_id = "{sanitize_param(owner_id)}"',
            sort="-created_at",
        )
        lists = [TaskList(**record) for record in records]
        for task_list in lists:
            task_list.tasks = await get_tasks(task_list.id)
        return lists


def is_in_foreground(task_list: TaskList, now: datetime | None = None) -> bool:
    """A list stays in the owner's active view until it is resolved and published."""
    return not is_list_resolved(task_list, now) or not task_list.is_public


async def get_active_lists(
    owner_id: str,
    *,
    exclude: Collection[str] | Callable[[TaskList], bool] | None = None,
    now: datetime | None = None,
) -> list[TaskList]:
    """Lists the owner still has to act on.

    Keeps lists that are unresolved, or resolved but not yet published.
    ``exclude`` is the caller's own transient "hidden" state, either a set of
    list ids or a predicate; it is applied as-is and never stored.
    """
    hidden_ids = set() if exclude is None or callable(exclude) else set(exclude)

    def excluded(task_list: TaskList) -> bool:
        if callable(exclude):
            return exclude(task_list)
        return task_list.id in hidden_ids

    lists = await get_lists_for_owner(owner_id)
    return [task_list for task_list in lists if is_in_foreground(task_list, now) and not excluded(task_list)]


async def get_public_lists(*, limit: int = constants.DEFAULT_PER_PAGE_LIMIT) -> list[PublicListEntry]:
    """Community feed: public lists, most recently completed first, with vote tallies."""
    with span("list_service.get_public_lists"):
        records = await db_client.list_records(
            collection="lists",
            filter_query='is_public = "true"',
            per_page=limit,
            sort="-completed_at",
        )

        entries = []
        owners: dict[str, str] = {}
        for record in records:
            task_list = TaskList(**record)
            if task_list.user_id not in owners:
                try:
                    owner = await db_client.get_record(collection="profiles", record_id=task_list.user_id)
                    owners[task_list.user_id] = owner.get("username") or ""
                except db_client.RecordNotFoundError:
                    owners[task_list.user_id] = ""

            list_filter = f'list_id = "{sanitize_param(task_list.id)}"'
            task_count = await db_client.count_records(collection="tasks", filter_query=list_filter)
            real = await db_client.count_records(
                collection="votes", filter_query=f'{list_filter} && vote = "{VoteValue.REAL.value}"'
            )
            fake = await db_client.count_records(
                collection="votes", filter_query=f'{list_filter} && vote = "{VoteValue.FAKE.value}"'
            )

            entries.append(
                PublicListEntry(
                    list_id=task_list.id,
                    owner_id=task_list.user_id,
                    owner_username=owners[task_list.user_id],
                    title=task_list.title,
                    type=task_list.type,
                    is_completed=task_list.is_completed,
                    completed_at=task_list.completed_at,
                    reward=task_list.reward,
                    punishment=task_list.punishment,
                    task_count=task_count,
                    real_votes=real,
                    fake_votes=fake,
                    view_count=task_list.view_count,
                )
            )

        return entries


async def record_view(*, session: Session, list_id: str) -> bool:
    """Count the session profile as a viewer of a public list.

    Each profile is counted once per list.

    Returns:
        True if this was the profile's first view of the list

    Raises:
        db_client.RecordNotFoundError: If the list does not exist
        InvalidListStateError: If the list is not public
    """
    with span("list_service.record_view"):
        async with db_client.transaction():
            task_list = await get_list(list_id)
            if not task_list.is_public:
                msg = f"List {list_id} is not public"
                raise InvalidListStateError(msg)

            viewer = sanitize_param(session.profile_id)
            seen = await db_client.count_records(
                collection="views",
                filter_query=f'list_id = "{sanitize_param(list_id)}" && user_id = "{viewer}"',
            )
            if seen:
                return False

            await db_client.create_record(
                collection="views",
                data={"list_id": list_id, "user_id": session.profile_id, "created_at": to_iso(utc_now())},
            )
            await db_client.increment_field(collection="lists", record_id=list_id, field="view_count", amount=1)

        logger.info("Profile %s viewed list %s", session.profile_id, list_id)
        return True
