"""Pydantic request models for creating and updating records."""

import re

from pydantic import BaseModel, Field, field_validator

from tasklevel.domain.task_list import Stake, TaskInput
from tasklevel.domain.vote import VoteValue


MAX_USERNAME_LENGTH = 50


class ListCreate(BaseModel):
    """Request body for creating a list.

    ``type`` stays a plain string so a missing or unknown period reaches the
    service and comes back as a failure result instead of a schema error.
    The expiration is always computed server-side; unknown fields are ignored.
    """

    type: str = Field(default="", description="daily, weekly or monthly")
    tasks: list[TaskInput] = Field(default_factory=list, description="Task inputs in display order")
    rewards: list[Stake] = Field(default_factory=list, description="Reward and punishment entries")


class TaskCompletionUpdate(BaseModel):
    """Request body for toggling a task."""

    completed: bool


class VoteCreate(BaseModel):
    """Request body for casting a vote."""

    vote: VoteValue


class ProfileCreate(BaseModel):
    """Identity details supplied on first sign-in."""

    email: str = Field(default="", description="Contact address from the auth provider")
    username: str = Field(default="", description="Username from the auth provider metadata")


class ProfileUpdate(BaseModel):
    """Self-edit of a profile."""

    username: str = Field(..., description="New display name")
    email: str = Field(..., description="New contact address")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate the username is non-empty and reasonably short."""
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be empty")
        if len(v) > MAX_USERNAME_LENGTH:
            raise ValueError(f"Username too long (max {MAX_USERNAME_LENGTH} characters)")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the email has a plausible shape."""
        v = v.strip()
        if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", v):
            raise ValueError("Invalid email address")
        return v


class PushSubscriptionCreate(BaseModel):
    """Browser push subscription as registered by the client."""

    endpoint: str = Field(..., min_length=1, description="Push service delivery URL")
    p256dh_key: str = Field(..., min_length=1, description="Client public key (base64url)")
    auth_key: str = Field(..., min_length=1, description="Client auth secret (base64url)")
