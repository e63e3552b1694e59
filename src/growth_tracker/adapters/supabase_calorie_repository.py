"""Supabase implementation of the remote calorie service."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TypeVar
from zoneinfo import ZoneInfo

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError as SchemaError
from supabase import Client

from growth_tracker.domain.errors import RemoteUnavailable
from growth_tracker.domain.meals import MealEntry
from growth_tracker.domain.sync import RemoteDay, RemoteMeal
from growth_tracker.services.sync import CalorieRemote

_T = TypeVar("_T")


@dataclass
class SupabaseCalorieRepository(CalorieRemote):
    """Stores goals in ``calorie_goals`` and meals in ``calorie_meals``."""

    client: Client
    timezone_name: str = "UTC"

    async def get_today(self, user_id: str) -> RemoteDay:
        """Return today's meals and goal."""
        return _guard("get_today", lambda: self._load_day(user_id))

    async def add_meal(self, user_id: str, entry: MealEntry) -> RemoteDay:
        """Upsert a meal row by id and return the updated day."""

        def insert() -> RemoteDay:
            self.client.table("calorie_meals").upsert(
                {
                    "id": entry.id,
                    "user_id": user_id,
                    "day": self._today().isoformat(),
                    "name": entry.name,
                    "calories": entry.calories,
                    "category": entry.category,
                    "protein_g": entry.protein_g,
                    "carbs_g": entry.carbs_g,
                    "fat_g": entry.fat_g,
                    "logged_at": entry.timestamp.isoformat(),
                },
                on_conflict="id",
            ).execute()
            return self._load_day(user_id)

        return _guard("add_meal", insert)

    async def set_goal(self, user_id: str, daily_goal: int) -> None:
        """Upsert the user's daily goal."""
        _guard(
            "set_goal",
            lambda: self.client.table("calorie_goals")
            .upsert(
                {
                    "user_id": user_id,
                    "daily_goal": daily_goal,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            )
            .execute(),
        )

    async def reset_today(self, user_id: str) -> None:
        """Delete today's meal rows."""
        _guard(
            "reset_today",
            lambda: self.client.table("calorie_meals")
            .delete()
            .eq("user_id", user_id)
            .eq("day", self._today().isoformat())
            .execute(),
        )

    def _load_day(self, user_id: str) -> RemoteDay:
        goal_response = (
            self.client.table("calorie_goals")
            .select("daily_goal")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        meals_response = (
            self.client.table("calorie_meals")
            .select(
                "id, name, calories, category, protein_g, carbs_g, fat_g, logged_at"
            )
            .eq("user_id", user_id)
            .eq("day", self._today().isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        meals = [RemoteMeal.model_validate(row) for row in meals_response.data or []]
        daily_goal = None
        if goal_response.data:
            daily_goal = int(goal_response.data[0].get("daily_goal") or 0) or None
        return RemoteDay(
            total_calories=sum(meal.calories for meal in meals),
            daily_goal=daily_goal,
            meals=meals,
        )

    def _today(self) -> date:
        return datetime.now(tz=ZoneInfo(self.timezone_name)).date()


def _guard(action: str, call: Callable[[], _T]) -> _T:
    try:
        return call()
    except (APIError, httpx.HTTPError, SchemaError) as exc:
        raise RemoteUnavailable(f"Supabase {action} failed: {exc}") from exc
