"""Per-day list allowance checks."""

import logging
from datetime import datetime

from tasklevel.core import db_client
from tasklevel.core.clock import to_iso
from tasklevel.core.config import constants
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.expiration import local_day_start
from tasklevel.core.logging import span
from tasklevel.domain.task_list import ListType
from tasklevel.models.service_models import QuotaCheck, QuotaStatus


logger = logging.getLogger(__name__)


async def can_create_list(*, profile_id: str, list_type: ListType, now: datetime | None = None) -> QuotaCheck:
    """Check whether a profile may create another list of a type today.

    Counts the profile's lists of ``list_type`` created since the start of the
    current local day. A failed count is reported as indeterminate so the
    caller can tell "no" apart from "could not check".

    Args:
        profile_id: Profile that wants to create a list
        list_type: Period of the new list
        now: Reference instant (defaults to the current time)

    Returns:
        QuotaCheck with the allowance status
    """
    with span("quota_service.can_create_list"):
        list_type = ListType(list_type)
        limit = constants.LIST_LIMITS[list_type]
        day_start = local_day_start(now)

        filter_query = (
            f'user_id = "{sanitize_param(profile_id)}" && type = "{list_type}" '
            f'&& created_at >= "{to_iso(day_start)}"'
        )

        try:
            existing = await db_client.count_records(collection="lists", filter_query=filter_query)
        except Exception as e:
            logger.exception("Quota check failed for profile=%s type=%s", profile_id, list_type)
            return QuotaCheck(status=QuotaStatus.INDETERMINATE, list_type=list_type, limit=limit, error=str(e))

        status = QuotaStatus.ALLOWED if existing < limit else QuotaStatus.DENIED
        logger.info(
            "Quota for profile=%s type=%s: %d/%d (%s)",
            profile_id,
            list_type,
            existing,
            limit,
            status,
        )
        return QuotaCheck(status=status, list_type=list_type, existing_count=existing, limit=limit)
