"""Domain models for remote synchronization."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from growth_tracker.domain.meals import DailyProgress, MealEntry


class SyncPhase(StrEnum):
    """Phases a mutating operation moves through."""

    PENDING_REMOTE = "pending_remote"
    CONFIRMED = "confirmed"
    LOCAL_FALLBACK = "local_fallback"
    LOCAL_ONLY = "local_only"


class SyncStatus(StrEnum):
    """User-facing outcome of a synchronized operation."""

    SYNCED = "synced"
    OFFLINE = "offline"
    LOCAL = "local"


_STATUS_BY_PHASE = {
    SyncPhase.CONFIRMED: SyncStatus.SYNCED,
    SyncPhase.LOCAL_FALLBACK: SyncStatus.OFFLINE,
    SyncPhase.LOCAL_ONLY: SyncStatus.LOCAL,
}

_NOTICE_BY_STATUS = {
    SyncStatus.SYNCED: "Saved",
    SyncStatus.OFFLINE: "Saved offline",
    SyncStatus.LOCAL: "Saved on this device",
}


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a mutating or refresh operation."""

    phase: SyncPhase
    progress: DailyProgress
    entry: MealEntry | None = None

    @property
    def status(self) -> SyncStatus:
        """Return the status derived from the terminal phase."""
        return _STATUS_BY_PHASE[self.phase]

    @property
    def notice(self) -> str:
        """Return the notification text for the caller."""
        return _NOTICE_BY_STATUS[self.status]


class PendingKind(StrEnum):
    """Kinds of queued remote mutations."""

    ADD_MEAL = "add_meal"
    SET_GOAL = "set_goal"
    RESET = "reset"


class PendingOperation(BaseModel):
    """A mutation committed locally that still has to reach the remote."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: PendingKind
    queued_at: datetime
    entry: MealEntry | None = None
    daily_goal: int | None = Field(default=None, gt=0)


class RemoteMeal(BaseModel):
    """Meal row as returned by a remote service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str = Field(min_length=1)
    calories: int = Field(ge=0)
    category: str | None = None
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    timestamp: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "createdAt", "logged_at"),
    )


class RemoteDay(BaseModel):
    """Remote snapshot of a user's day."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total_calories: int = Field(default=0, alias="totalCalories")
    daily_goal: int | None = Field(default=None, alias="dailyGoal")
    meals: list[RemoteMeal] = Field(default_factory=list)
