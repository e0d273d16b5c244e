"""Profile domain model."""

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """Profile data transfer object."""

    id: str = Field(..., description="Stable identity from the auth provider")
    username: str = Field(default="", description="Display name")
    email: str = Field(default="", description="Contact address")
    points: int = Field(default=0, ge=0, description="Cumulative point balance")
    avatar_url: str | None = Field(default=None, description="Avatar reference")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
