"""Push subscription domain model."""

from pydantic import BaseModel, Field


class PushSubscription(BaseModel):
    """A registered Web Push endpoint for a profile."""

    id: str
    user_id: str = Field(..., description="Owning profile ID")
    endpoint: str = Field(..., description="Push service delivery URL")
    p256dh_key: str = Field(..., description="Client public key (base64url)")
    auth_key: str = Field(..., description="Client auth secret (base64url)")
    is_active: bool = Field(default=True, description="False once the push service reports it gone")
    created_at: str | None = None
