"""Request bodies for the HTTP API."""

from pydantic import BaseModel


class AddMealRequest(BaseModel):
    """Log a custom meal, or a catalog item when ``catalog_item_id`` is set."""

    name: str | None = None
    calories: float | str | None = None
    category: str = "breakfast"
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    catalog_item_id: str | None = None


class SetGoalRequest(BaseModel):
    """Replace the daily calorie goal."""

    daily_goal: float


class AddGoalRequest(BaseModel):
    """Create a growth goal."""

    text: str
    category: str = "health"


class AssistantRequest(BaseModel):
    """Ask the growth assistant a question."""

    prompt: str
