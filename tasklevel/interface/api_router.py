"""HTTP API for the Task.level client."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tasklevel.core.config import constants
from tasklevel.core.errors import (
    ErrorCode,
    ListLimitReachedError,
    QuotaUnavailableError,
    classify_error_with_response,
)
from tasklevel.domain.create_models import (
    ListCreate,
    ProfileCreate,
    ProfileUpdate,
    PushSubscriptionCreate,
    TaskCompletionUpdate,
    VoteCreate,
)
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import ListType
from tasklevel.models.service_models import QuotaStatus
from tasklevel.services import (
    list_service,
    profile_service,
    push_subscription_service,
    quota_service,
    settlement_service,
    stats_service,
    task_service,
    vote_service,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasklevel"])


async def get_session(x_profile_id: str | None = Header(default=None)) -> Session:
    """Build the acting session from the identity forwarded by the auth proxy."""
    if not x_profile_id or not x_profile_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Profile-Id header")
    return Session(profile_id=x_profile_id.strip())


async def get_optional_session(x_profile_id: str | None = Header(default=None)) -> Session | None:
    if not x_profile_id or not x_profile_id.strip():
        return None
    return Session(profile_id=x_profile_id.strip())


def _ok(content: BaseModel | list[BaseModel] | dict[str, Any], status_code: int = constants.HTTP_OK) -> JSONResponse:
    if isinstance(content, BaseModel):
        body: Any = content.model_dump(mode="json")
    elif isinstance(content, list):
        body = [item.model_dump(mode="json") for item in content]
    else:
        body = content
    return JSONResponse(content=body, status_code=status_code)


def _error(exc: Exception) -> JSONResponse:
    error = classify_error_with_response(exc)
    if error.status_code >= constants.HTTP_SERVER_ERROR:
        logger.exception("Request failed: %s", error.code)
    else:
        logger.info("Request rejected: %s (%s)", error.code, exc)
    return JSONResponse(
        content={"code": error.code, "message": error.message, "suggestion": error.suggestion},
        status_code=error.status_code,
    )


# Lists


@router.post("/lists")
async def create_list(payload: ListCreate, session: Session = Depends(get_session)) -> JSONResponse:
    """Check today's allowance, then create the list with its tasks."""
    try:
        if payload.type in set(ListType):
            quota = await quota_service.can_create_list(profile_id=session.profile_id, list_type=ListType(payload.type))
            if quota.status is QuotaStatus.DENIED:
                msg = f"Limit of {quota.limit} {quota.list_type} list(s) per day reached"
                raise ListLimitReachedError(msg)
            if quota.status is QuotaStatus.INDETERMINATE:
                raise QuotaUnavailableError(quota.error or "Quota check failed")

        result = await list_service.create_list(
            session=session,
            list_type=payload.type,
            tasks=payload.tasks,
            rewards=payload.rewards,
        )
    except Exception as e:
        return _error(e)

    if result.success:
        return _ok(result, status_code=status.HTTP_201_CREATED)
    if result.message == list_service.MSG_FILL_ALL_FIELDS:
        return JSONResponse(
            content={"code": ErrorCode.ERR_VALIDATION_FAILED, "message": result.message, "suggestion": ""},
            status_code=constants.HTTP_BAD_REQUEST,
        )
    return JSONResponse(
        content={"code": ErrorCode.ERR_STORAGE, "message": result.message, "suggestion": "Please try again later."},
        status_code=constants.HTTP_SERVER_ERROR,
    )


@router.get("/lists/mine")
async def get_my_lists(
    hidden: str = Query(default="", description="Comma-separated list ids the client has hidden"),
    session: Session = Depends(get_session),
) -> JSONResponse:
    """Lists still awaiting the owner's attention."""
    exclude = {list_id.strip() for list_id in hidden.split(",") if list_id.strip()}
    try:
        lists = await list_service.get_active_lists(session.profile_id, exclude=exclude)
    except Exception as e:
        return _error(e)
    return _ok(lists)


@router.get("/lists/public")
async def get_public_lists(
    limit: int = Query(default=constants.DEFAULT_PER_PAGE_LIMIT, ge=1, le=constants.MAX_PER_PAGE_LIMIT),
) -> JSONResponse:
    try:
        entries = await list_service.get_public_lists(limit=limit)
    except Exception as e:
        return _error(e)
    return _ok(entries)


@router.get("/lists/{list_id}")
async def get_list(list_id: str) -> JSONResponse:
    try:
        task_list = await list_service.get_list_with_tasks(list_id)
    except Exception as e:
        return _error(e)
    return _ok(task_list)


@router.post("/lists/{list_id}/publish")
async def publish_list(list_id: str, session: Session = Depends(get_session)) -> JSONResponse:
    try:
        result = await settlement_service.make_public(session=session, list_id=list_id)
    except Exception as e:
        return _error(e)
    return _ok(result)


@router.post("/lists/{list_id}/hide")
async def hide_list(list_id: str, session: Session = Depends(get_session)) -> JSONResponse:
    try:
        result = await settlement_service.hide_list(session=session, list_id=list_id)
    except Exception as e:
        return _error(e)
    return _ok(result)


@router.post("/lists/{list_id}/views")
async def record_view(list_id: str, session: Session = Depends(get_session)) -> JSONResponse:
    """Count the caller as a viewer of a public list."""
    try:
        counted = await list_service.record_view(session=session, list_id=list_id)
    except Exception as e:
        return _error(e)
    return _ok({"counted": counted})


# Tasks


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str, payload: TaskCompletionUpdate, session: Session = Depends(get_session)
) -> JSONResponse:
    try:
        result = await task_service.set_task_completion(session=session, task_id=task_id, completed=payload.completed)
    except Exception as e:
        return _error(e)
    return _ok(result)


# Votes


@router.post("/lists/{list_id}/votes")
async def cast_vote(list_id: str, payload: VoteCreate, session: Session = Depends(get_session)) -> JSONResponse:
    try:
        result = await vote_service.cast_vote(session=session, list_id=list_id, value=payload.vote)
    except Exception as e:
        return _error(e)
    return _ok(result)


@router.get("/lists/{list_id}/votes")
async def get_votes(list_id: str, session: Session | None = Depends(get_optional_session)) -> JSONResponse:
    try:
        tally = await vote_service.get_vote_tally(list_id, profile_id=session.profile_id if session else None)
    except Exception as e:
        return _error(e)
    return _ok(tally)


# Profiles


@router.post("/profiles/me")
async def sign_in(payload: ProfileCreate, session: Session = Depends(get_session)) -> JSONResponse:
    """Return the caller's profile, creating it on first sign-in."""
    try:
        profile = await profile_service.ensure_profile(
            profile_id=session.profile_id, email=payload.email, username=payload.username
        )
    except Exception as e:
        return _error(e)
    return _ok(profile)


@router.patch("/profiles/me")
async def update_profile(payload: ProfileUpdate, session: Session = Depends(get_session)) -> JSONResponse:
    try:
        profile = await profile_service.update_profile(
            session=session, username=payload.username, email=payload.email
        )
    except Exception as e:
        return _error(e)
    return _ok(profile)


@router.get("/profiles/{profile_id}")
async def get_profile(profile_id: str) -> JSONResponse:
    try:
        profile = await profile_service.get_profile(profile_id)
    except Exception as e:
        return _error(e)
    return _ok(profile)


@router.get("/profiles/{profile_id}/stats")
async def get_stats(profile_id: str) -> JSONResponse:
    try:
        stats = await stats_service.get_stats(profile_id)
    except Exception as e:
        return _error(e)
    return _ok(stats)


@router.get("/profiles/{profile_id}/list-stats")
async def get_list_stats(profile_id: str) -> JSONResponse:
    try:
        stats = await stats_service.get_list_stats(profile_id)
    except Exception as e:
        return _error(e)
    return _ok(stats)


@router.post("/profiles/me/stats/reset")
async def reset_stats(session: Session = Depends(get_session)) -> JSONResponse:
    """Refund every point spent on stats."""
    try:
        result = await stats_service.reset_stats(session=session)
    except Exception as e:
        return _error(e)
    return _ok(result)


@router.post("/profiles/me/stats/{stat}/upgrade")
async def upgrade_stat(stat: str, session: Session = Depends(get_session)) -> JSONResponse:
    try:
        stats = await stats_service.upgrade_stat(session=session, stat=stat)
    except Exception as e:
        return _error(e)
    return _ok(stats)


@router.get("/leaderboard")
async def get_leaderboard(
    sort_by: str = Query(default=profile_service.LeaderboardSort.POINTS),
    limit: int = Query(default=constants.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=constants.MAX_PER_PAGE_LIMIT),
) -> JSONResponse:
    try:
        entries = await profile_service.get_leaderboard(sort_by=sort_by, limit=limit)
    except Exception as e:
        return _error(e)
    return _ok(entries)


# Push subscriptions


@router.put("/push-subscription")
async def save_push_subscription(
    payload: PushSubscriptionCreate, session: Session = Depends(get_session)
) -> JSONResponse:
    try:
        subscription = await push_subscription_service.save_subscription(
            session=session,
            endpoint=payload.endpoint,
            p256dh_key=payload.p256dh_key,
            auth_key=payload.auth_key,
        )
    except Exception as e:
        return _error(e)
    return _ok(subscription)


@router.delete("/push-subscription")
async def delete_push_subscription(session: Session = Depends(get_session)) -> JSONResponse:
    try:
        removed = await push_subscription_service.remove_subscription(session=session)
    except Exception as e:
        return _error(e)
    return _ok({"removed": removed})
