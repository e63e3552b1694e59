"""Local meal log and daily calorie goal."""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from growth_tracker.domain.errors import MalformedLocalState, ValidationError
from growth_tracker.domain.meals import (
    DEFAULT_DAILY_GOAL,
    DailyProgress,
    DailyTotals,
    MealCategory,
    MealEntry,
    MealSource,
    resolve_category,
)
from growth_tracker.services.aggregation import (
    consumed_total,
    daily_history,
    summarize_day,
)
from growth_tracker.services.storage import (
    ANONYMOUS_OWNER,
    KeyValueStore,
    commit,
    owner_key,
)

CONSUMED_KEY = "consumed-calories-today"
GOAL_KEY = "daily-calorie-goal"
TODAY_LOG_KEY = "today-meal-log"
TODAY_DAY_KEY = "today-meal-log-day"
HISTORY_LOG_KEY = "historical-meal-log"

_ENTRIES = TypeAdapter(list[MealEntry])

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class EntryStore:
    """Append-only meal log for the current day plus the daily goal."""

    storage: KeyValueStore
    owner: str = ANONYMOUS_OWNER
    timezone_name: str = "UTC"
    default_goal: int = DEFAULT_DAILY_GOAL
    history_retention_days: int = 30
    clock: Callable[[], datetime] = _utc_now

    def build_entry(  # noqa: PLR0913
        self,
        name: object,
        calories: object,
        category: MealCategory | str = MealCategory.BREAKFAST,
        *,
        source: MealSource = MealSource.CUSTOM_MEAL,
        protein_g: object = 0.0,
        carbs_g: object = 0.0,
        fat_g: object = 0.0,
    ) -> MealEntry:
        """Create a validated entry with a fresh id and timestamp."""
        return MealEntry(
            id=str(uuid4()),
            name=_validate_name(name),
            calories=_validate_calories(calories),
            protein_g=_validate_grams("protein", protein_g),
            carbs_g=_validate_grams("carbs", carbs_g),
            fat_g=_validate_grams("fat", fat_g),
            category=resolve_category(str(category)).value,
            timestamp=self._next_timestamp(),
            source=source,
        )

    def append(self, entry: MealEntry) -> str:
        """Add an entry to today's log and return its id."""
        _validate_name(entry.name)
        _validate_calories(entry.calories)
        self._roll_over()
        entries = self._read_entries(TODAY_LOG_KEY)
        if any(existing.id == entry.id for existing in entries):
            raise ValidationError(f"Meal entry {entry.id} already exists")
        self._write_today([*entries, entry])
        return entry.id

    def list_today(self) -> list[MealEntry]:
        """Return today's entries, most recent first."""
        self._roll_over()
        entries = self._read_entries(TODAY_LOG_KEY)
        return sorted(
            reversed(entries), key=lambda entry: entry.timestamp, reverse=True
        )

    def consumed_total(self) -> int:
        """Return calories consumed today."""
        return consumed_total(self.list_today())

    def daily_goal(self) -> int:
        """Return the active daily goal."""
        key = self._key(GOAL_KEY)
        raw = self.storage.get(key)
        if raw is None:
            return self.default_goal
        try:
            return decode_goal(GOAL_KEY, raw)
        except MalformedLocalState as exc:
            _logger.warning("Resetting local state: %s", exc)
            self.storage.remove(key)
            return self.default_goal

    def progress(self) -> DailyProgress:
        """Return derived progress for today."""
        return summarize_day(self.list_today(), self.daily_goal())

    def reset_today(self) -> None:
        """Clear today's entries and consumed total; the goal is kept."""
        self._roll_over()
        commit(
            self.storage,
            {
                self._key(TODAY_LOG_KEY): encode_entries([]),
                self._key(CONSUMED_KEY): "0",
            },
        )

    def set_goal(self, value: object) -> int:
        """Replace the daily goal."""
        goal = validate_goal(value)
        commit(self.storage, {self._key(GOAL_KEY): str(goal)})
        return goal

    def replace_today(
        self, entries: Sequence[MealEntry], daily_goal: int | None = None
    ) -> None:
        """Overwrite today's log with an authoritative snapshot."""
        self._roll_over()
        updates: dict[str, str | None] = {
            self._key(TODAY_LOG_KEY): encode_entries(entries),
            self._key(CONSUMED_KEY): str(consumed_total(entries)),
            self._key(TODAY_DAY_KEY): self._today().isoformat(),
        }
        if daily_goal is not None:
            updates[self._key(GOAL_KEY)] = str(validate_goal(daily_goal))
        commit(self.storage, updates)

    def list_history(self) -> list[MealEntry]:
        """Return archived entries from previous days, oldest first."""
        self._roll_over()
        return self._read_entries(HISTORY_LOG_KEY)

    def history_totals(self) -> list[DailyTotals]:
        """Return per-day totals for today and the archived days."""
        entries = [*self.list_history(), *self._read_entries(TODAY_LOG_KEY)]
        return daily_history(entries, ZoneInfo(self.timezone_name))

    def _next_timestamp(self) -> datetime:
        now = self.clock()
        entries = self._read_entries(TODAY_LOG_KEY)
        if entries and entries[-1].timestamp > now:
            return entries[-1].timestamp
        return now

    def _today(self) -> date:
        return self.clock().astimezone(ZoneInfo(self.timezone_name)).date()

    def _roll_over(self) -> None:
        """Archive the stored day's entries once the calendar day changes."""
        today = self._today()
        day_key = self._key(TODAY_DAY_KEY)
        stored_day = self.storage.get(day_key)
        if stored_day == today.isoformat():
            return
        entries = self._read_entries(TODAY_LOG_KEY)
        updates: dict[str, str | None] = {day_key: today.isoformat()}
        if entries:
            tz = ZoneInfo(self.timezone_name)
            cutoff = today - timedelta(days=self.history_retention_days)
            history = [
                entry
                for entry in [*self._read_entries(HISTORY_LOG_KEY), *entries]
                if entry.timestamp.astimezone(tz).date() >= cutoff
            ]
            updates[self._key(HISTORY_LOG_KEY)] = encode_entries(history)
            updates[self._key(TODAY_LOG_KEY)] = encode_entries([])
            updates[self._key(CONSUMED_KEY)] = "0"
            _logger.info(
                "Archived %s meal entries for owner=%s", len(entries), self.owner
            )
        commit(self.storage, updates)

    def _write_today(self, entries: Sequence[MealEntry]) -> None:
        commit(
            self.storage,
            {
                self._key(TODAY_LOG_KEY): encode_entries(entries),
                self._key(CONSUMED_KEY): str(consumed_total(entries)),
            },
        )

    def _read_entries(self, name: str) -> list[MealEntry]:
        key = self._key(name)
        raw = self.storage.get(key)
        if raw is None:
            return []
        try:
            return decode_entries(name, raw)
        except MalformedLocalState as exc:
            _logger.warning("Resetting local state: %s", exc)
            self.storage.remove(key)
            return []

    def _key(self, name: str) -> str:
        return owner_key(self.owner, name)


def encode_entries(entries: Sequence[MealEntry]) -> str:
    """Serialize entries to the persisted JSON format."""
    return _ENTRIES.dump_json(list(entries)).decode("utf-8")


def decode_entries(key: str, raw: str) -> list[MealEntry]:
    """Parse persisted entries, raising MalformedLocalState on bad data."""
    try:
        return _ENTRIES.validate_json(raw)
    except SchemaError as exc:
        raise MalformedLocalState(key, str(exc)) from exc


def decode_goal(key: str, raw: str) -> int:
    """Parse a persisted goal, raising MalformedLocalState on bad data."""
    try:
        return validate_goal(int(raw))
    except ValueError as exc:
        raise MalformedLocalState(key, str(exc)) from exc


def validate_goal(value: object) -> int:
    """Return the goal as an int, or raise ValidationError if not positive."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError("Daily goal must be a number")
    if not math.isfinite(value) or value != int(value) or value <= 0:
        raise ValidationError("Daily goal must be a positive whole number")
    return int(value)


def _validate_name(value: object) -> str:
    name = str(value or "").strip()
    if not name:
        raise ValidationError("Meal name is required")
    return name


def _validate_calories(value: object) -> int:
    number = _to_number(value, "Calories")
    if number < 0:
        raise ValidationError("Calories cannot be negative")
    return math.trunc(number)


def _validate_grams(label: str, value: object) -> float:
    number = _to_number(value, label.capitalize())
    if number < 0:
        raise ValidationError(f"{label.capitalize()} cannot be negative")
    return number


def _to_number(value: object, label: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise ValidationError(f"{label} must be a number") from exc
    else:
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number")
    return number
