"""Task completion and the list completion it derives."""

import logging
from datetime import datetime

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, to_iso, utc_now
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.logging import span
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import Task, TaskList
from tasklevel.models.service_models import TaskCompletionResult
from tasklevel.services import notification_service


logger = logging.getLogger(__name__)


async def _load_owned_task(*, session: Session, task_id: str) -> tuple[Task, TaskList]:
    task = Task(**await db_client.get_record(collection="tasks", record_id=task_id))
    task_list = TaskList(**await db_client.get_record(collection="lists", record_id=task.list_id))
    if task_list.user_id != session.profile_id:
        msg = f"Task {task_id} belongs to another profile's list"
        raise PermissionError(msg)
    return task, task_list


async def set_task_completion(
    *,
    session: Session,
    task_id: str,
    completed: bool,
    now: datetime | None = None,
) -> TaskCompletionResult:
    """Mark a task done or undone and recompute its list's completion.

    The task flag and the list's derived ``is_completed`` / ``completed_at``
    are written in one transaction. A list becomes complete when every task is
    done; the first moment that happens is recorded and the owner gets exactly
    one "completed" notification for it. Undoing a task reopens the list and
    clears the timestamp without notifying.

    Args:
        session: Acting profile (must own the list)
        task_id: Task to update
        completed: New completion flag
        now: Reference instant (defaults to the current time)

    Returns:
        TaskCompletionResult describing the list after the change

    Raises:
        db_client.RecordNotFoundError: If the task or its list does not exist
        PermissionError: If the list belongs to another profile
        db_client.DatabaseError: If a write fails (nothing is applied)
    """
    with span("task_service.set_task_completion"):
        now = ensure_utc(now or utc_now())
        task, list_before = await _load_owned_task(session=session, task_id=task_id)

        async with db_client.transaction():
            await db_client.update_record(collection="tasks", record_id=task.id, data={"is_completed": completed})

            siblings = await db_client.list_all_records(
                collection="tasks",
                filter_query=f'list_id = "{sanitize_param(task.list_id)}"',
            )
            all_completed = bool(siblings) and all(record["is_completed"] for record in siblings)

            if all_completed:
                completed_at = list_before.completed_at if list_before.is_completed else None
                completed_at = completed_at or to_iso(now)
            else:
                completed_at = None

            await db_client.update_record(
                collection="lists",
                record_id=list_before.id,
                data={"is_completed": all_completed, "completed_at": completed_at},
            )

        became_completed = all_completed and not list_before.is_completed
        logger.info(
            "Task %s set to %s; list %s completed=%s",
            task_id,
            completed,
            list_before.id,
            all_completed,
        )

        if became_completed:
            await notification_service.notify(
                target_profile_id=list_before.user_id,
                payload=notification_service.list_completed(list_title=list_before.title, list_id=list_before.id),
            )

        return TaskCompletionResult(
            task_id=task.id,
            list_id=list_before.id,
            task_completed=completed,
            list_completed=all_completed,
            became_completed=became_completed,
            completed_at=completed_at,
        )
