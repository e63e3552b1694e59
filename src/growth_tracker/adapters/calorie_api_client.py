"""REST client for the remote calorie service."""

from dataclasses import dataclass

import httpx
from pydantic import ValidationError as SchemaError

from growth_tracker.domain.errors import RemoteUnavailable
from growth_tracker.domain.meals import MealEntry
from growth_tracker.domain.sync import RemoteDay
from growth_tracker.services.sync import CalorieRemote

USER_ID_HEADER = "X-User-Id"


@dataclass
class HttpxCalorieApiClient(CalorieRemote):
    """HTTPX-backed client for the calorie REST API."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float) -> "HttpxCalorieApiClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(timeout=timeout_seconds),
        )

    async def get_today(self, user_id: str) -> RemoteDay:
        """Fetch today's remote snapshot."""
        payload = await self._request("GET", "/calories/today", user_id)
        return _parse_day(payload)

    async def add_meal(self, user_id: str, entry: MealEntry) -> RemoteDay:
        """Add a meal remotely."""
        payload = await self._request(
            "POST",
            "/calories/add-meal",
            user_id,
            json={
                "name": entry.name,
                "calories": entry.calories,
                "category": entry.category,
            },
        )
        if not isinstance(payload, dict) or not payload.get("success"):
            raise RemoteUnavailable("Remote rejected add-meal")
        return _parse_day(payload.get("calorieEntry") or {})

    async def set_goal(self, user_id: str, daily_goal: int) -> None:
        """Replace the remote daily goal."""
        await self._request(
            "PUT", "/calories/goal", user_id, json={"dailyGoal": daily_goal}
        )

    async def reset_today(self, user_id: str) -> None:
        """Clear today's remote meals."""
        await self._request("POST", "/calories/reset", user_id)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        user_id: str,
        json: dict[str, object] | None = None,
    ) -> object:
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                headers={USER_ID_HEADER: user_id},
                json=json,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(f"{method} {path} failed: {exc}") from exc
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteUnavailable(f"{method} {path} returned invalid JSON") from exc


def _parse_day(payload: object) -> RemoteDay:
    try:
        return RemoteDay.model_validate(payload)
    except SchemaError as exc:
        raise RemoteUnavailable(f"Unexpected remote payload: {exc}") from exc
