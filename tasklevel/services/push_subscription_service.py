"""Web Push subscription records for profiles."""

import logging

from tasklevel.core import db_client
from tasklevel.core.clock import to_iso, utc_now
from tasklevel.core.db_client import sanitize_param
from tasklevel.core.logging import span
from tasklevel.domain.push_subscription import PushSubscription
from tasklevel.domain.session import Session


logger = logging.getLogger(__name__)


async def save_subscription(*, session: Session, endpoint: str, p256dh_key: str, auth_key: str) -> PushSubscription:
    """Register the browser subscription of a profile, replacing any previous one.

    Old rows are removed and the new one inserted in one transaction, so a
    profile has at most one subscription at a time.
    """
    with span("push_subscription_service.save_subscription"):
        async with db_client.transaction():
            removed = await db_client.delete_records(
                collection="push_subscriptions",
                filter_query=f'user_id = "{sanitize_param(session.profile_id)}"',
            )
            record = await db_client.create_record(
                collection="push_subscriptions",
                data={
                    "user_id": session.profile_id,
                    "endpoint": endpoint,
                    "p256dh_key": p256dh_key,
                    "auth_key": auth_key,
                    "is_active": True,
                    "created_at": to_iso(utc_now()),
                },
            )

        logger.info("Saved push subscription for profile=%s (replaced %d)", session.profile_id, removed)
        return PushSubscription(**record)


async def remove_subscription(*, session: Session) -> int:
    """Delete every subscription of the session profile; returns how many were removed."""
    with span("push_subscription_service.remove_subscription"):
        removed = await db_client.delete_records(
            collection="push_subscriptions",
            filter_query=f'user_id = "{sanitize_param(session.profile_id)}"',
        )
        logger.info("Removed %d push subscriptions for profile=%s", removed, session.profile_id)
        return removed


async def get_active_subscriptions(profile_ids: list[str]) -> list[PushSubscription]:
    """Active subscriptions belonging to any of the given profiles."""
    if not profile_ids:
        return []

    ids = " || ".join(f'user_id = "{sanitize_param(pid)}"' for pid in profile_ids)
    records = await db_client.list_all_records(
        collection="push_subscriptions",
        filter_query=f'is_active = "true" && ({ids})',
    )
    return [PushSubscription(**record) for record in records]


async def deactivate_subscription(subscription_id: str) -> None:
    """Mark a subscription inactive once the push service reports it expired."""
    await db_client.update_record(
        collection="push_subscriptions", record_id=subscription_id, data={"is_active": False}
    )
    logger.info("Deactivated push subscription %s", subscription_id)
