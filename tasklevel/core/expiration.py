"""Expiration and local-day arithmetic for task lists.

The product runs on a single local clock: local time is UTC shifted by
``settings.local_utc_offset_hours`` (2 by default, so local midnight is 22:00
UTC). Every list expires on a local midnight and must stay open for more than
``Constants.MIN_VALIDITY_HOURS`` after it is created.
"""

from datetime import UTC, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from tasklevel.core.clock import ensure_utc, parse_iso, utc_now
from tasklevel.core.config import constants, settings
from tasklevel.domain.task_list import ListType, TaskList


def _offset(utc_offset_hours: int | None) -> timedelta:
    hours = settings.local_utc_offset_hours if utc_offset_hours is None else utc_offset_hours
    return timedelta(hours=hours)


def local_day_start(now: datetime | None = None, *, utc_offset_hours: int | None = None) -> datetime:
    """Return the UTC instant at which the current local day began."""
    now = ensure_utc(now or utc_now())
    offset = _offset(utc_offset_hours)
    local_midnight = datetime.combine((now + offset).date(), time.min, tzinfo=UTC)
    return local_midnight - offset


def _local_month_end(now: datetime, offset: timedelta, *, months_ahead: int) -> datetime:
    """Local midnight that closes the current local month (plus ``months_ahead``)."""
    local_now = now + offset
    first_of_month = datetime(local_now.year, local_now.month, 1, tzinfo=UTC)
    return first_of_month + relativedelta(months=1 + months_ahead) - offset


def calculate_expiration(
    list_type: ListType | str,
    *,
    now: datetime | None = None,
    utc_offset_hours: int | None = None,
) -> datetime:
    """Compute when a list created now expires.

    daily: the next local midnight. weekly: seven days after the local
    midnight that closes the current UTC date, so between local midnight and
    UTC midnight the week counts from the day that just ended. monthly: the
    local midnight ending the current month. A candidate that is not strictly
    more than the minimum validity away is pushed one period further (one
    day, one week, or the end of the following month).

    Args:
        list_type: Period of the list
        now: Reference instant (defaults to the current time)
        utc_offset_hours: Local clock offset (defaults to settings)

    Returns:
        Aware UTC datetime of the expiration

    Raises:
        ValueError: If list_type is not a known period
    """
    try:
        period = ListType(list_type)
    except ValueError as e:
        raise ValueError(f"Invalid list type: {list_type!r}") from e

    now = ensure_utc(now or utc_now())
    offset = _offset(utc_offset_hours)
    min_validity = timedelta(hours=constants.MIN_VALIDITY_HOURS)

    if period is ListType.MONTHLY:
        months_ahead = 0
        expires_at = _local_month_end(now, offset, months_ahead=months_ahead)
        while expires_at - now <= min_validity:
            months_ahead += 1
            expires_at = _local_month_end(now, offset, months_ahead=months_ahead)
        return expires_at

    if period is ListType.DAILY:
        step = timedelta(days=1)
        expires_at = local_day_start(now, utc_offset_hours=utc_offset_hours) + step
    else:
        # Weekly lists anchor on the local midnight that closes the current UTC date
        step = timedelta(days=7)
        utc_midnight = datetime.combine(now.date(), time.min, tzinfo=UTC)
        expires_at = utc_midnight + timedelta(days=1) - offset + step
    while expires_at - now <= min_validity:
        expires_at += step
    return expires_at


def is_list_resolved(task_list: TaskList, now: datetime | None = None) -> bool:
    """A list awaits the publish/keep-private decision once completed or expired."""
    if task_list.is_completed:
        return True
    if task_list.expires_at:
        return parse_iso(task_list.expires_at) <= ensure_utc(now or utc_now())
    return False
