"""Character stats bought with points."""

from enum import StrEnum

from pydantic import BaseModel, Field


class StatType(StrEnum):
    """The six attributes a profile can level up."""

    STRENGTH = "strength"
    ENDURANCE = "endurance"
    SPEED = "speed"
    PERCEPTION = "perception"
    INTELLIGENCE = "intelligence"
    LUCK = "luck"


class StatSheet(BaseModel):
    """Stat levels of one profile."""

    id: str | None = Field(default=None, description="Row ID, None until the first upgrade")
    user_id: str = Field(..., description="Owning profile ID")
    strength: int = Field(default=0, ge=0)
    endurance: int = Field(default=0, ge=0)
    speed: int = Field(default=0, ge=0)
    perception: int = Field(default=0, ge=0)
    intelligence: int = Field(default=0, ge=0)
    luck: int = Field(default=0, ge=0)

    def level(self, stat: StatType) -> int:
        return getattr(self, stat.value)
