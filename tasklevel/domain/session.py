"""Explicit actor context passed to every operation that acts on behalf of a profile."""

from pydantic import BaseModel, Field


class Session(BaseModel):
    """The authenticated profile performing an operation."""

    model_config = {"frozen": True}

    profile_id: str = Field(..., min_length=1, description="Profile ID verified by the auth provider")
