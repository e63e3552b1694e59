"""Domain models for personal growth goals."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class GrowthCategory(StrEnum):
    """Categories a growth goal can belong to."""

    HEALTH = "health"
    PRODUCTIVITY = "productivity"
    LEARNING = "learning"
    MINDFULNESS = "mindfulness"
    SOCIAL = "social"


class GrowthGoal(BaseModel):
    """A discrete personal objective."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    category: GrowthCategory
    completed: bool = False
    created_at: datetime
    completed_at: datetime | None = None
