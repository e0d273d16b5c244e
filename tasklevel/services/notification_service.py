"""Notification service: templated push notifications to profiles."""

import logging

from tasklevel.core.logging import span
from tasklevel.domain.task_list import ListType
from tasklevel.interface import push_sender
from tasklevel.models.service_models import NotificationPayload, PushDispatchResult


logger = logging.getLogger(__name__)


# Templates


def list_check_in(*, list_type: ListType, list_id: str, delay_minutes: int) -> NotificationPayload:
    """Nudge sent a few minutes after a list is created."""
    return NotificationPayload(
        title="Just created",
        body=f"Your {list_type} list was created {delay_minutes} minutes ago. How is it going?",
        tag="check-in",
        url=f"/list/{list_id}",
    )


def list_completed(*, list_title: str, list_id: str) -> NotificationPayload:
    return NotificationPayload(
        title="🎉 Goal reached!",
        body=f'You completed "{list_title}"! Fantastic!',
        tag="completed",
        url=f"/list/{list_id}",
    )


def list_expiring(*, list_title: str, hours_left: int, list_id: str) -> NotificationPayload:
    body = (
        f'"{list_title}" expires in less than an hour!'
        if hours_left <= 1
        else f'"{list_title}" expires in {hours_left} hours'
    )
    return NotificationPayload(title="⏰ List expiring!", body=body, tag="expiring", url=f"/list/{list_id}")


def list_expired(*, list_title: str, list_id: str) -> NotificationPayload:
    return NotificationPayload(
        title="⏳ List expired",
        body=f'"{list_title}" has expired. You can still finish it!',
        tag="expired",
        url=f"/list/{list_id}",
    )


def new_real_vote(*, voter_name: str, list_title: str, list_id: str) -> NotificationPayload:
    return NotificationPayload(
        title="✅ New Real vote!",
        body=f'{voter_name} thinks "{list_title}" is for real!',
        tag="vote-real",
        url=f"/list/{list_id}",
    )


def new_fake_vote(*, voter_name: str, list_title: str, list_id: str) -> NotificationPayload:
    return NotificationPayload(
        title="❌ New Fake vote",
        body=f'{voter_name} has doubts about "{list_title}"',
        tag="vote-fake",
        url=f"/list/{list_id}",
    )


# Dispatch


async def notify(*, target_profile_id: str, payload: NotificationPayload) -> PushDispatchResult:
    """Send a notification to one profile.

    Best-effort: failures are logged and reported in the result, never raised.

    Args:
        target_profile_id: Profile to notify
        payload: Templated notification

    Returns:
        PushDispatchResult with delivery counts
    """
    with span("notification_service.notify"):
        try:
            result = await push_sender.send_push(user_ids=[target_profile_id], payload=payload)
        except Exception as e:
            logger.exception("Error sending %s notification to profile=%s", payload.tag, target_profile_id)
            return PushDispatchResult(success=False, failed=1, error=str(e))

        if result.success:
            logger.info(
                "Sent %s notification to profile=%s (sent=%d failed=%d)",
                payload.tag,
                target_profile_id,
                result.sent,
                result.failed,
            )
        else:
            logger.error(
                "Failed to send %s notification to profile=%s error=%s",
                payload.tag,
                target_profile_id,
                result.error,
            )
        return result
