"""Pure aggregation over meal entries and growth goals."""

import math
from collections.abc import Iterable, Sequence
from datetime import date
from zoneinfo import ZoneInfo

from growth_tracker.domain.goals import GrowthGoal
from growth_tracker.domain.meals import (
    DailyProgress,
    DailyTotals,
    MacroTotals,
    MealCategory,
    MealEntry,
    resolve_category,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def consumed_total(entries: Iterable[MealEntry]) -> int:
    """Return the summed calories of the entries."""
    return sum(entry.calories for entry in entries)


def remaining(goal: int, consumed: int) -> int:
    """Return calories left before the goal is reached, never negative."""
    return max(0, goal - consumed)


def progress_percentage(goal: int, consumed: int) -> int:
    """Return consumption as a percentage of the goal, clamped to 0-100."""
    if goal <= 0:
        return 0
    return max(0, min(100, round_half_up(100 * consumed / goal)))


def is_over_goal(goal: int, consumed: int) -> bool:
    """Return True when consumption exceeds the goal."""
    return consumed > goal


def category_totals(entries: Iterable[MealEntry]) -> dict[MealCategory, int]:
    """Return calories per meal category.

    Every category is present. Unrecognized labels land in the fallback bucket.
    """
    totals = {category: 0 for category in MealCategory}
    for entry in entries:
        totals[resolve_category(entry.category)] += entry.calories
    return totals


def macro_totals(entries: Iterable[MealEntry]) -> MacroTotals:
    """Return summed macronutrients."""
    protein = carbs = fat = 0.0
    for entry in entries:
        protein += entry.protein_g
        carbs += entry.carbs_g
        fat += entry.fat_g
    return MacroTotals(protein_g=protein, carbs_g=carbs, fat_g=fat)


def completion_rate(goals: Sequence[GrowthGoal]) -> int:
    """Return the percentage of completed goals, 0 when there are none."""
    completed = sum(1 for goal in goals if goal.completed)
    return round_half_up(100 * completed / max(1, len(goals)))


def summarize_day(entries: Sequence[MealEntry], goal: int) -> DailyProgress:
    """Compute every derived metric for a day's entries."""
    consumed = consumed_total(entries)
    return DailyProgress(
        daily_goal=goal,
        consumed=consumed,
        remaining=remaining(goal, consumed),
        percentage=progress_percentage(goal, consumed),
        over_goal=is_over_goal(goal, consumed),
        category_totals=category_totals(entries),
        macros=macro_totals(entries),
        entries=list(entries),
    )


def daily_history(entries: Iterable[MealEntry], tz: ZoneInfo) -> list[DailyTotals]:
    """Group entries by local calendar day, newest day first."""
    calories: dict[date, int] = {}
    meals: dict[date, int] = {}
    for entry in entries:
        day = entry.timestamp.astimezone(tz).date()
        calories[day] = calories.get(day, 0) + entry.calories
        meals[day] = meals.get(day, 0) + 1
    return [
        DailyTotals(day=day, calories=calories[day], meals=meals[day])
        for day in sorted(calories, reverse=True)
    ]
