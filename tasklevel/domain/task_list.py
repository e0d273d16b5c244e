"""List and task domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field


class ListType(StrEnum):
    """Period a list covers; governs task minimums, quotas and points."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class StakeKind(StrEnum):
    """Kind of stake attached to a list."""

    REWARD = "reward"
    PUNISHMENT = "punishment"


class Stake(BaseModel):
    """A reward or punishment the owner wagers on completing the list."""

    type: StakeKind = Field(..., description="reward or punishment")
    text: str = Field(default="", description="What the owner gets or has to do")


class TaskInput(BaseModel):
    """One task entry as typed by the user before the list is created."""

    label: str = Field(default="", description="Placeholder label shown to the user")
    value: str = Field(default="", description="Task text")


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID")
    list_id: str = Field(..., description="Owning list ID")
    description: str = Field(..., description="Task text")
    is_completed: bool = Field(default=False, description="Whether the task is done")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")


class TaskList(BaseModel):
    """List data transfer object, optionally with its tasks attached."""

    id: str = Field(..., description="Unique list ID")
    user_id: str = Field(..., description="Owning profile ID")
    title: str = Field(..., description="List title")
    type: ListType = Field(..., description="daily, weekly or monthly")
    is_public: bool = Field(default=False, description="Visible in the community feed")
    is_completed: bool = Field(default=False, description="Every task is done")
    reward: str = Field(default="", description="Reward text")
    punishment: str = Field(default="", description="Punishment text")
    completed_at: str | None = Field(default=None, description="Completion timestamp (ISO format)")
    expires_at: str | None = Field(default=None, description="Expiration timestamp (ISO format)")
    settled_at: str | None = Field(default=None, description="When points were awarded for the list (ISO format)")
    view_count: int = Field(default=0, ge=0, description="Distinct profiles that opened the public list")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    tasks: list[Task] = Field(default_factory=list, description="Child tasks, when loaded")
