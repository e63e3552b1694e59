"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class MealCategory(StrEnum):
    """Meal-time categories used for grouping entries."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class MealSource(StrEnum):
    """Provenance of a meal entry."""

    CUSTOM_MEAL = "custom_meal"
    FOOD_RECOMMENDATION = "food_recommendation"


FALLBACK_CATEGORY = MealCategory.SNACK
DEFAULT_DAILY_GOAL = 2000

# Labels written by older catalog revisions.
LEGACY_CATEGORY_ALIASES: dict[str, MealCategory] = {
    "snacks": MealCategory.SNACK,
    "evening_snack": MealCategory.SNACK,
    "morning": MealCategory.BREAKFAST,
    "brunch": MealCategory.BREAKFAST,
    "supper": MealCategory.DINNER,
}


def resolve_category(raw: str | None) -> MealCategory:
    """Map a stored category label to a meal category, falling back to snack."""
    if not raw:
        return FALLBACK_CATEGORY
    label = raw.strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return MealCategory(label)
    except ValueError:
        return LEGACY_CATEGORY_ALIASES.get(label, FALLBACK_CATEGORY)


class MealEntry(BaseModel):
    """One logged meal."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    calories: int = Field(ge=0)
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    category: str = MealCategory.BREAKFAST.value
    timestamp: datetime
    source: MealSource = MealSource.CUSTOM_MEAL


@dataclass(frozen=True)
class MacroTotals:
    """Summed macronutrients in grams."""

    protein_g: float
    carbs_g: float
    fat_g: float


@dataclass(frozen=True)
class DailyProgress:
    """Derived calorie progress for one day."""

    daily_goal: int
    consumed: int
    remaining: int
    percentage: int
    over_goal: bool
    category_totals: dict[MealCategory, int]
    macros: MacroTotals
    entries: list[MealEntry]


@dataclass(frozen=True)
class DailyTotals:
    """Per-day totals derived from the historical log."""

    day: date
    calories: int
    meals: int
