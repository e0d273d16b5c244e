"""Vote domain models."""

from enum import IntEnum, StrEnum

from pydantic import BaseModel, Field


class VoteValue(IntEnum):
    """A community judgment on a public list."""

    REAL = 1
    FAKE = -1


class VoteAction(StrEnum):
    """What casting a vote did to the stored row."""

    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class Vote(BaseModel):
    """Vote data transfer object."""

    id: str
    list_id: str
    user_id: str = Field(..., description="Voting profile ID")
    vote: VoteValue
    created_at: str | None = None
