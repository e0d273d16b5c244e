"""Profile service: lazy creation on sign-in, self-edit and the leaderboard."""

import logging
from collections import defaultdict
from datetime import datetime
from enum import StrEnum

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, parse_iso, to_iso, utc_now
from tasklevel.core.config import constants
from tasklevel.core.logging import span
from tasklevel.domain.profile import Profile
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import TaskList
from tasklevel.domain.vote import Vote, VoteValue
from tasklevel.models.service_models import LeaderboardEntry


logger = logging.getLogger(__name__)


class LeaderboardSort(StrEnum):
    """Metric the leaderboard is ranked by."""

    POINTS = "points"
    REAL = "real"
    FAKE = "fake"
    COMPLETED = "completed"
    FAILED = "failed"


_SORT_FIELDS = {
    LeaderboardSort.POINTS: "points",
    LeaderboardSort.REAL: "real_votes",
    LeaderboardSort.FAKE: "fake_votes",
    LeaderboardSort.COMPLETED: "completed_lists",
    LeaderboardSort.FAILED: "failed_lists",
}


def _default_username(email: str) -> str:
    return email.split("@", 1)[0] if email else ""


async def ensure_profile(*, profile_id: str, email: str, username: str = "") -> Profile:
    """Return the profile for an authenticated identity, creating it on first sign-in.

    Args:
        profile_id: Stable identity from the auth provider
        email: Contact address from the auth provider
        username: Preferred display name (defaults to the email's local part)

    Returns:
        The existing or newly created profile
    """
    with span("profile_service.ensure_profile"):
        try:
            return Profile(**await db_client.get_record(collection="profiles", record_id=profile_id))
        except db_client.RecordNotFoundError:
            pass

        record = await db_client.create_record(
            collection="profiles",
            data={
                "id": profile_id,
                "username": username or _default_username(email),
                "email": email,
                "points": 0,
                "created_at": to_iso(utc_now()),
            },
        )
        logger.info("Created profile for %s", profile_id)
        return Profile(**record)


async def get_profile(profile_id: str) -> Profile:
    """Fetch a profile.

    Raises:
        db_client.RecordNotFoundError: If the profile does not exist
    """
    return Profile(**await db_client.get_record(collection="profiles", record_id=profile_id))


async def update_profile(*, session: Session, username: str, email: str) -> Profile:
    """Update the session profile's display name and contact address."""
    with span("profile_service.update_profile"):
        record = await db_client.update_record(
            collection="profiles",
            record_id=session.profile_id,
            data={"username": username, "email": email},
        )
        logger.info("Updated profile %s", session.profile_id)
        return Profile(**record)


async def get_leaderboard(
    *,
    sort_by: LeaderboardSort | str = LeaderboardSort.POINTS,
    limit: int = constants.LEADERBOARD_DEFAULT_LIMIT,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Rank profiles by points, votes received, or completed/failed lists.

    A failed list is one whose deadline passed without every task being done.
    Ties keep the points order.

    Args:
        sort_by: Ranking metric
        limit: Maximum number of entries
        now: Reference instant for deciding which lists failed

    Returns:
        Leaderboard entries with 1-based positions

    Raises:
        ValueError: If sort_by is not a known metric
    """
    with span("profile_service.get_leaderboard"):
        sort_key = _SORT_FIELDS[LeaderboardSort(sort_by)]
        now = ensure_utc(now or utc_now())

        profiles = [Profile(**r) for r in await db_client.list_all_records(collection="profiles", sort="-points")]
        lists = [TaskList(**r) for r in await db_client.list_all_records(collection="lists")]
        votes = [Vote(**r) for r in await db_client.list_all_records(collection="votes")]

        owner_by_list = {task_list.id: task_list.user_id for task_list in lists}
        stats: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for task_list in lists:
            owner_stats = stats[task_list.user_id]
            owner_stats["total_lists"] += 1
            if task_list.is_completed:
                owner_stats["completed_lists"] += 1
            elif task_list.expires_at and parse_iso(task_list.expires_at) <= now:
                owner_stats["failed_lists"] += 1
        for vote in votes:
            owner_id = owner_by_list.get(vote.list_id)
            if owner_id is None:
                continue
            stats[owner_id]["real_votes" if vote.vote is VoteValue.REAL else "fake_votes"] += 1

        rows = [
            {
                "profile_id": profile.id,
                "username": profile.username,
                "avatar_url": profile.avatar_url,
                "points": profile.points,
                "real_votes": stats[profile.id]["real_votes"],
                "fake_votes": stats[profile.id]["fake_votes"],
                "completed_lists": stats[profile.id]["completed_lists"],
                "failed_lists": stats[profile.id]["failed_lists"],
                "total_lists": stats[profile.id]["total_lists"],
            }
            for profile in profiles
        ]
        rows.sort(key=lambda row: row[sort_key], reverse=True)

        return [LeaderboardEntry(position=i, **row) for i, row in enumerate(rows[:limit], start=1)]
