"""Domain models for the food catalog."""

from dataclasses import dataclass

from growth_tracker.domain.meals import MealCategory


@dataclass(frozen=True)
class CatalogItem:
    """A known food with precomputed nutrition estimates."""

    id: str
    name: str
    category: MealCategory
    calories: int
    protein_g: int
    carbs_g: int
    fat_g: int
    benefits: tuple[str, ...]
