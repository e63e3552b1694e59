"""Personal growth goals kept in local storage."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from growth_tracker.domain.errors import MalformedLocalState, ValidationError
from growth_tracker.domain.goals import GrowthCategory, GrowthGoal
from growth_tracker.services.aggregation import completion_rate
from growth_tracker.services.storage import (
    ANONYMOUS_OWNER,
    KeyValueStore,
    commit,
    owner_key,
)

GOALS_KEY = "growth-goals"

_GOALS = TypeAdapter(list[GrowthGoal])

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class GoalTracker:
    """Add, toggle and remove growth goals for one owner."""

    storage: KeyValueStore
    owner: str = ANONYMOUS_OWNER
    clock: Callable[[], datetime] = _utc_now

    def add(
        self, text: object, category: GrowthCategory | str = GrowthCategory.HEALTH
    ) -> str:
        """Create a goal and return its id."""
        clean_text = str(text or "").strip()
        if not clean_text:
            raise ValidationError("Goal text is required")
        try:
            resolved = GrowthCategory(category)
        except ValueError as exc:
            raise ValidationError(f"Unknown goal category: {category}") from exc
        goal = GrowthGoal(
            id=str(uuid4()),
            text=clean_text,
            category=resolved,
            created_at=self.clock(),
        )
        self._write([*self.list_goals(), goal])
        _logger.info("Goal added: owner=%s category=%s", self.owner, resolved)
        return goal.id

    def toggle(self, goal_id: str) -> GrowthGoal | None:
        """Flip a goal's completion state and return the updated goal."""
        goals = self.list_goals()
        updated: GrowthGoal | None = None
        for index, goal in enumerate(goals):
            if goal.id != goal_id:
                continue
            completed = not goal.completed
            updated = goal.model_copy(
                update={
                    "completed": completed,
                    "completed_at": self.clock() if completed else None,
                }
            )
            goals[index] = updated
            break
        if updated is None:
            return None
        self._write(goals)
        return updated

    def remove(self, goal_id: str) -> bool:
        """Delete a goal; return False when it does not exist."""
        goals = self.list_goals()
        remaining = [goal for goal in goals if goal.id != goal_id]
        if len(remaining) == len(goals):
            return False
        self._write(remaining)
        return True

    def list_goals(self) -> list[GrowthGoal]:
        """Return goals in creation order."""
        key = owner_key(self.owner, GOALS_KEY)
        raw = self.storage.get(key)
        if raw is None:
            return []
        try:
            return decode_goals(raw)
        except MalformedLocalState as exc:
            _logger.warning("Resetting local state: %s", exc)
            self.storage.remove(key)
            return []

    def completion_rate(self) -> int:
        """Return the percentage of completed goals."""
        return completion_rate(self.list_goals())

    def _write(self, goals: list[GrowthGoal]) -> None:
        commit(
            self.storage,
            {owner_key(self.owner, GOALS_KEY): _GOALS.dump_json(goals).decode("utf-8")},
        )


def decode_goals(raw: str) -> list[GrowthGoal]:
    """Parse persisted goals, raising MalformedLocalState on bad data."""
    try:
        return _GOALS.validate_json(raw)
    except SchemaError as exc:
        raise MalformedLocalState(GOALS_KEY, str(exc)) from exc
