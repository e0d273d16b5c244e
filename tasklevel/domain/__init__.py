"""Domain models and DTOs."""

from tasklevel.domain.create_models import (
    ListCreate,
    ProfileCreate,
    ProfileUpdate,
    PushSubscriptionCreate,
    TaskCompletionUpdate,
    VoteCreate,
)
from tasklevel.domain.profile import Profile
from tasklevel.domain.push_subscription import PushSubscription
from tasklevel.domain.session import Session
from tasklevel.domain.task_list import ListType, Stake, StakeKind, Task, TaskInput, TaskList
from tasklevel.domain.vote import Vote, VoteAction, VoteValue


__all__ = [
    "ListCreate",
    "ListType",
    "Profile",
    "ProfileCreate",
    "ProfileUpdate",
    "PushSubscription",
    "PushSubscriptionCreate",
    "Session",
    "Stake",
    "StakeKind",
    "Task",
    "TaskCompletionUpdate",
    "TaskInput",
    "TaskList",
    "Vote",
    "VoteAction",
    "VoteCreate",
    "VoteValue",
]
