"""Client for the remote push fan-out function."""

import logging

import httpx

from tasklevel.core.config import constants, settings
from tasklevel.models.service_models import NotificationPayload, PushDispatchResult


logger = logging.getLogger(__name__)


# HTTP status code constants for error handling
HTTP_CLIENT_ERROR_START = 400
HTTP_CLIENT_ERROR_END = 500


def build_request_body(*, user_ids: list[str], payload: NotificationPayload) -> dict:
    """Shape the fan-out request, filling in the default icon assets."""
    body = payload.model_dump(exclude_none=True)
    body.setdefault("icon", constants.NOTIFICATION_ICON)
    body.setdefault("badge", constants.NOTIFICATION_ICON)
    body.setdefault("image", constants.NOTIFICATION_IMAGE)
    return {"userIds": user_ids, "payload": body}


async def send_push(*, user_ids: list[str], payload: NotificationPayload) -> PushDispatchResult:
    """Forward a notification to the push fan-out function.

    One attempt, no retries. Every failure is returned as an unsuccessful
    result rather than raised.
    """
    if not settings.push_function_url:
        return PushDispatchResult(success=False, failed=len(user_ids), error="Push function URL not configured")

    headers = {"Content-Type": "application/json"}
    if settings.push_function_key:
        headers["Authorization"] = f"Bearer {settings.push_function_key}"

    try:
        async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.push_function_url,
                json=build_request_body(user_ids=user_ids, payload=payload),
                headers=headers,
            )
    except httpx.HTTPError as e:
        return PushDispatchResult(success=False, failed=len(user_ids), error=f"Request failed: {e!s}")

    if response.is_success:
        try:
            data = response.json()
        except ValueError:
            data = {}
        return PushDispatchResult(success=True, sent=data.get("sent", 0), failed=data.get("failed", 0))

    if HTTP_CLIENT_ERROR_START <= response.status_code < HTTP_CLIENT_ERROR_END:
        return PushDispatchResult(success=False, failed=len(user_ids), error=f"Client error: {response.text}")

    return PushDispatchResult(
        success=False, failed=len(user_ids), error=f"Server error: {response.status_code}"
    )
