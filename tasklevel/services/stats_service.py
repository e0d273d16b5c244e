"""Stats service: spending points on character stats and summarizing a profile's lists."""

import logging
from datetime import datetime

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, to_iso, utc_now
from tasklevel.core.config import constants
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.errors import InsufficientPointsError
from tasklevel.core.logging import log_with_user_context, span
from tasklevel.domain.profile import Profile
from tasklevel.domain.session import Session
from tasklevel.domain.stats import StatSheet, StatType
from tasklevel.models.service_models import ListStats, ProfileStats, StatLevel, StatResetResult


logger = logging.getLogger(__name__)


def upgrade_cost(level: int) -> int:
    """Points needed to go from ``level`` to ``level + 1``."""
    return (level + 1) * constants.STAT_UPGRADE_COST_STEP


def spent_points(level: int) -> int:
    """Total points paid to reach ``level`` from zero."""
    return sum(upgrade_cost(i) for i in range(level))


async def _get_sheet(profile_id: str) -> StatSheet:
    record = await db_client.get_first_record(
        collection="stats", filter_query=f'user_id = "{sanitize_param(profile_id)}"'
    )
    return StatSheet(**record) if record else StatSheet(user_id=profile_id)


def _to_profile_stats(profile: Profile, sheet: StatSheet) -> ProfileStats:
    return ProfileStats(
        profile_id=profile.id,
        points=profile.points,
        stats=[
            StatLevel(stat=stat, level=sheet.level(stat), upgrade_cost=upgrade_cost(sheet.level(stat)))
            for stat in StatType
        ],
        spent_points=sum(spent_points(sheet.level(stat)) for stat in StatType),
    )


async def get_stats(profile_id: str) -> ProfileStats:
    """Stat levels and point balance of a profile; profiles that never upgraded are all zero.

    Raises:
        db_client.RecordNotFoundError: If the profile does not exist
    """
    with span("stats_service.get_stats"):
        profile = Profile(**await db_client.get_record(collection="profiles", record_id=profile_id))
        return _to_profile_stats(profile, await _get_sheet(profile_id))


async def upgrade_stat(*, session: Session, stat: StatType | str) -> ProfileStats:
    """Raise one of the session profile's stats by a level, paying for it with points.

    The balance check, the point deduction and the level change happen in one
    transaction.

    Args:
        session: Profile spending the points
        stat: Attribute to level up

    Returns:
        The updated stat sheet and balance

    Raises:
        ValueError: If stat is not a known attribute
        db_client.RecordNotFoundError: If the profile does not exist
        InsufficientPointsError: If the balance does not cover the upgrade
    """
    stat = StatType(stat)
    with span("stats_service.upgrade_stat"):
        async with db_client.transaction():
            profile = Profile(**await db_client.get_record(collection="profiles", record_id=session.profile_id))
            sheet = await _get_sheet(session.profile_id)
            level = sheet.level(stat)
            cost = upgrade_cost(level)
            if profile.points < cost:
                msg = f"Upgrading {stat} to level {level + 1} costs {cost} points, you have {profile.points}"
                raise InsufficientPointsError(msg)

            if sheet.id is None:
                record = await db_client.create_record(
                    collection="stats",
                    data={"user_id": session.profile_id, stat.value: level + 1, "created_at": to_iso(utc_now())},
                )
            else:
                record = await db_client.update_record(
                    collection="stats", record_id=sheet.id, data={stat.value: level + 1}
                )
            profile_record = await db_client.increment_field(
                collection="profiles", record_id=session.profile_id, field="points", amount=-cost
            )

        log_with_user_context(
            logger, "info", "Upgraded stat", profile_id=session.profile_id, stat=stat.value, level=level + 1, cost=cost
        )
        return _to_profile_stats(Profile(**profile_record), StatSheet(**record))


async def reset_stats(*, session: Session) -> StatResetResult:
    """Put every stat of the session profile back to zero and refund all points spent on them.

    Raises:
        db_client.RecordNotFoundError: If the profile does not exist
    """
    with span("stats_service.reset_stats"):
        async with db_client.transaction():
            sheet = await _get_sheet(session.profile_id)
            refund = sum(spent_points(sheet.level(stat)) for stat in StatType)

            if sheet.id is not None:
                await db_client.update_record(
                    collection="stats", record_id=sheet.id, data={stat.value: 0 for stat in StatType}
                )
            if refund:
                profile_record = await db_client.increment_field(
                    collection="profiles", record_id=session.profile_id, field="points", amount=refund
                )
            else:
                profile_record = await db_client.get_record(collection="profiles", record_id=session.profile_id)

        log_with_user_context(logger, "info", "Reset stats", profile_id=session.profile_id, refunded=refund)
        profile = Profile(**profile_record)
        return StatResetResult(refunded=refund, profile=_to_profile_stats(profile, StatSheet(user_id=profile.id)))


async def get_list_stats(profile_id: str, *, now: datetime | None = None) -> ListStats:
    """Completed, expired-uncompleted and total list counts of a profile."""
    with span("stats_service.get_list_stats"):
        now = ensure_utc(now or utc_now())
        by_owner = f'user_id = "{sanitize_param(profile_id)}"'
        total = await db_client.count_records(collection="lists", filter_query=by_owner)
        completed = await db_client.count_records(
            collection="lists", filter_query=f'{by_owner} && is_completed = "true"'
        )
        expired = await db_client.count_records(
            collection="lists", filter_query=f'{by_owner} && is_completed = "false" && expires_at <= "{to_iso(now)}"'
        )
        return ListStats(profile_id=profile_id, completed_lists=completed, expired_lists=expired, total_lists=total)
