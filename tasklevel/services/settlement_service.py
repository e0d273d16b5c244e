"""Publication and point settlement for resolved lists."""

import logging
from datetime import datetime

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, to_iso, utc_now
from tasklevel.core.config import constants
from tasklevel.core.errors import InvalidListStateError
from tasklevel.core.expiration import is_list_resolved
from tasklevel.core.logging import log_with_user_context, span
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import ListType, TaskList
from tasklevel.models.service_models import SettlementResult


logger = logging.getLogger(__name__)


def calculate_points(list_type: ListType | str, is_public: bool) -> int:
    """Points a completed list earns: the full base when published, half when kept private."""
    base = constants.BASE_POINTS[ListType(list_type)]
    return base // (1 if is_public else 2)


async def _load_owned_list(*, session: Session, list_id: str) -> TaskList:
    task_list = TaskList(**await db_client.get_record(collection="lists", record_id=list_id))
    if task_list.user_id != session.profile_id:
        msg = f"List {list_id} belongs to another profile"
        raise PermissionError(msg)
    return task_list


def _ensure_awaiting_decision(task_list: TaskList, now: datetime) -> None:
    """Only resolved, unpublished, unsettled lists can be published or kept private."""
    if task_list.is_public:
        msg = f"List {task_list.id} is already public"
        raise InvalidListStateError(msg)
    if task_list.settled_at:
        msg = f"Points for list {task_list.id} were already awarded"
        raise InvalidListStateError(msg)
    if not is_list_resolved(task_list, now):
        msg = f"List {task_list.id} is still open; complete it or wait for it to expire"
        raise InvalidListStateError(msg)


async def _award_points(*, profile_id: str, points: int) -> int:
    profile = await db_client.increment_field(
        collection="profiles", record_id=profile_id, field="points", amount=points
    )
    return profile["points"]


async def make_public(*, session: Session, list_id: str, now: datetime | None = None) -> SettlementResult:
    """Publish a resolved list to the community feed, awarding full points if it was completed.

    The state check, publication and point award happen in one transaction,
    so a list is never settled twice.

    Raises:
        db_client.RecordNotFoundError: If the list or owner profile does not exist
        PermissionError: If the list belongs to another profile
        InvalidListStateError: If the list is still open, already public, or already settled
    """
    with span("settlement_service.make_public"):
        now = ensure_utc(now or utc_now())
        balance = None

        async with db_client.transaction():
            task_list = await _load_owned_list(session=session, list_id=list_id)
            _ensure_awaiting_decision(task_list, now)

            points = calculate_points(task_list.type, is_public=True) if task_list.is_completed else 0
            data: dict = {"is_public": True}
            if points:
                data["settled_at"] = to_iso(now)
            await db_client.update_record(collection="lists", record_id=list_id, data=data)
            if points:
                balance = await _award_points(profile_id=task_list.user_id, points=points)

        log_with_user_context(
            logger, "info", "Published list", profile_id=task_list.user_id, list_id=list_id, points_awarded=points
        )
        return SettlementResult(list_id=list_id, made_public=True, points_awarded=points, points_balance=balance)


async def hide_list(*, session: Session, list_id: str, now: datetime | None = None) -> SettlementResult:
    """Keep a resolved list private.

    A completed list earns half points once; the award is recorded on the list
    so repeating the call is rejected. An expired, uncompleted list earns
    nothing and is not written. The caller drops the list from its own view
    using the returned id.

    Raises:
        db_client.RecordNotFoundError: If the list or owner profile does not exist
        PermissionError: If the list belongs to another profile
        InvalidListStateError: If the list is still open, already public, or already settled
    """
    with span("settlement_service.hide_list"):
        now = ensure_utc(now or utc_now())

        async with db_client.transaction():
            task_list = await _load_owned_list(session=session, list_id=list_id)
            _ensure_awaiting_decision(task_list, now)

            if not task_list.is_completed:
                logger.info("Hid uncompleted list %s for profile=%s", list_id, task_list.user_id)
                return SettlementResult(list_id=list_id, made_public=False, points_awarded=0)

            points = calculate_points(task_list.type, is_public=False)
            await db_client.update_record(collection="lists", record_id=list_id, data={"settled_at": to_iso(now)})
            balance = await _award_points(profile_id=task_list.user_id, points=points)

        log_with_user_context(
            logger, "info", "Kept list private", profile_id=task_list.user_id, list_id=list_id, points_awarded=points
        )
        return SettlementResult(list_id=list_id, made_public=False, points_awarded=points, points_balance=balance)
