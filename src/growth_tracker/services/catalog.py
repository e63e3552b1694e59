"""Static food catalog grouped by meal category."""

from dataclasses import dataclass

from growth_tracker.domain.catalog import CatalogItem
from growth_tracker.domain.errors import ValidationError
from growth_tracker.domain.meals import MealCategory
from growth_tracker.services.aggregation import round_half_up

# Calories for the item at index i are base + i * step.
_CALORIE_SCALE: dict[MealCategory, tuple[int, int]] = {
    MealCategory.BREAKFAST: (220, 40),
    MealCategory.LUNCH: (380, 50),
    MealCategory.DINNER: (420, 45),
    MealCategory.SNACK: (100, 30),
}

_SEEDS: dict[MealCategory, list[tuple[str, tuple[str, ...]]]] = {
    MealCategory.BREAKFAST: [
        ("Oatmeal with berries", ("High fiber", "Steady energy")),
        ("Greek yogurt parfait", ("Protein rich", "Gut health")),
        ("Vegetable omelette", ("Protein rich", "Low carb")),
        ("Avocado toast", ("Healthy fats", "Keeps you full")),
        ("Banana smoothie", ("Quick energy", "Potassium")),
        ("Whole grain pancakes", ("Complex carbs", "Fiber")),
    ],
    MealCategory.LUNCH: [
        ("Grilled chicken salad", ("Lean protein", "Low calorie")),
        ("Quinoa bowl", ("Complete protein", "Fiber")),
        ("Lentil soup", ("Plant protein", "Iron")),
        ("Turkey wrap", ("Lean protein", "Portable")),
        ("Brown rice and dal", ("Complex carbs", "Plant protein")),
        ("Tuna sandwich", ("Omega-3", "Protein rich")),
    ],
    MealCategory.DINNER: [
        ("Baked salmon with vegetables", ("Omega-3", "Heart health")),
        ("Stir-fried tofu", ("Plant protein", "Low fat")),
        ("Chicken curry with rice", ("Protein rich", "Warming spices")),
        ("Whole wheat pasta primavera", ("Fiber", "Vitamins")),
        ("Paneer tikka with roti", ("Calcium", "Protein rich")),
        ("Beef and broccoli", ("Iron", "Vitamin C")),
    ],
    MealCategory.SNACK: [
        ("Apple with peanut butter", ("Fiber", "Healthy fats")),
        ("Mixed nuts", ("Healthy fats", "Magnesium")),
        ("Hummus and carrots", ("Plant protein", "Vitamin A")),
        ("Protein bar", ("Protein rich", "Portable")),
        ("Roasted chickpeas", ("Fiber", "Crunchy")),
        ("Dark chocolate", ("Antioxidants", "Mood boost")),
    ],
}


def build_catalog_items() -> dict[MealCategory, list[CatalogItem]]:
    """Build catalog items with nutrition derived from each seed index."""
    items: dict[MealCategory, list[CatalogItem]] = {}
    for category, seeds in _SEEDS.items():
        base, step = _CALORIE_SCALE[category]
        items[category] = []
        for index, (name, benefits) in enumerate(seeds):
            calories = base + index * step
            items[category].append(
                CatalogItem(
                    id=f"{category.value}-{index}",
                    name=name,
                    category=category,
                    calories=calories,
                    protein_g=round_half_up(calories * 0.18 / 4),
                    carbs_g=round_half_up(calories * 0.52 / 4),
                    fat_g=round_half_up(calories * 0.30 / 9),
                    benefits=benefits,
                )
            )
    return items


@dataclass
class FoodCatalog:
    """Read-only catalog of recommended foods."""

    items: dict[MealCategory, list[CatalogItem]]

    @classmethod
    def create(cls) -> "FoodCatalog":
        """Create the catalog from the built-in seeds."""
        return cls(items=build_catalog_items())

    def list_by_category(self, category: MealCategory | str) -> list[CatalogItem]:
        """Return the items of a category in seed order."""
        return list(self.items.get(_parse_category(category), []))

    def search(
        self, category: MealCategory | str, query: str | None
    ) -> list[CatalogItem]:
        """Filter a category by name or benefit, case-insensitively."""
        items = self.list_by_category(category)
        needle = (query or "").strip().lower()
        if not needle:
            return items
        return [
            item
            for item in items
            if needle in item.name.lower()
            or any(needle in benefit.lower() for benefit in item.benefits)
        ]

    def get(self, item_id: str) -> CatalogItem | None:
        """Return a catalog item by id."""
        for items in self.items.values():
            for item in items:
                if item.id == item_id:
                    return item
        return None


def _parse_category(category: MealCategory | str) -> MealCategory:
    try:
        return MealCategory(category)
    except ValueError as exc:
        raise ValidationError(f"Unknown meal category: {category}") from exc
