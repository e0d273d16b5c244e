"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from tasklevel.domain.stats import StatType
from tasklevel.domain.task_list import ListType
from tasklevel.domain.vote import VoteAction, VoteValue


class QuotaStatus(StrEnum):
    """Outcome of a list allowance check."""

    ALLOWED = "allowed"
    DENIED = "denied"
    INDETERMINATE = "indeterminate"


class QuotaCheck(BaseModel):
    """Whether a profile may create another list of a type today."""

    status: QuotaStatus
    list_type: ListType
    existing_count: int | None = None
    limit: int
    error: str | None = None

    @property
    def allowed(self) -> bool:
        return self.status is QuotaStatus.ALLOWED


class CreateListResult(BaseModel):
    """Result of creating a list with its tasks."""

    success: bool
    message: str
    list_id: str | None = None
    expires_at: str | None = None


class TaskCompletionResult(BaseModel):
    """State of the parent list after a task toggle."""

    task_id: str
    list_id: str
    task_completed: bool
    list_completed: bool
    became_completed: bool = Field(default=False, description="The list just transitioned to complete")
    completed_at: str | None = None


class SettlementResult(BaseModel):
    """Result of publishing or privately keeping a resolved list."""

    list_id: str
    made_public: bool
    points_awarded: int
    points_balance: int | None = None
    hidden: bool = Field(default=True, description="Caller should drop the list from its active view")


class NotificationPayload(BaseModel):
    """Title/body/tag payload forwarded to the push fan-out function."""

    title: str
    body: str
    tag: str
    url: str | None = None
    icon: str | None = None
    badge: str | None = None
    image: str | None = None


class PushDispatchResult(BaseModel):
    """Result of forwarding a notification to the push fan-out function."""

    success: bool
    sent: int = 0
    failed: int = 0
    error: str | None = None


class ScheduledNotification(BaseModel):
    """A notification to deliver to one profile at a later time."""

    profile_id: str
    payload: NotificationPayload


class VoteResult(BaseModel):
    """What casting a vote did."""

    list_id: str
    action: VoteAction
    vote: VoteValue


class VoteTally(BaseModel):
    """Real/Fake counts for a public list."""

    list_id: str
    real: int
    fake: int
    user_vote: VoteValue | None = None


class PublicListEntry(BaseModel):
    """A list in the community feed with its owner and tally."""

    list_id: str
    owner_id: str
    owner_username: str
    title: str
    type: ListType
    is_completed: bool
    completed_at: str | None = None
    reward: str = ""
    punishment: str = ""
    task_count: int
    real_votes: int
    fake_votes: int
    view_count: int = 0

class LeaderboardEntry(BaseModel):
    """Profile entry in the leaderboard."""

    position: int
    profile_id: str
    username: str
    avatar_url: str | None = None
    points: int
    real_votes: int
    fake_votes: int
    completed_lists: int
    failed_lists: int
    total_lists: int


class StatLevel(BaseModel):
    """One attribute of a profile's stat sheet."""

    stat: StatType
    level: int
    upgrade_cost: int = Field(description="Points the next level costs")


class ProfileStats(BaseModel):
    """Stat sheet of a profile with its current balance."""

    profile_id: str
    points: int
    stats: list[StatLevel]
    spent_points: int = Field(description="Points a reset would refund")


class StatResetResult(BaseModel):
    """Outcome of resetting every stat to level zero."""

    refunded: int
    profile: ProfileStats


class ListStats(BaseModel):
    """How a profile's lists turned out."""

    profile_id: str
    completed_lists: int
    expired_lists: int
    total_lists: int
