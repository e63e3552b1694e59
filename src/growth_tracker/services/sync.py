"""Remote-then-local synchronization of the calorie log."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from growth_tracker.domain.errors import MalformedLocalState, RemoteUnavailable
from growth_tracker.domain.meals import (
    MealCategory,
    MealEntry,
    MealSource,
    resolve_category,
)
from growth_tracker.domain.sync import (
    PendingKind,
    PendingOperation,
    RemoteDay,
    RemoteMeal,
    SyncPhase,
    SyncResult,
)
from growth_tracker.services.entries import EntryStore, validate_goal
from growth_tracker.services.storage import commit, owner_key

PENDING_KEY = "pending-sync-operations"

_PENDING = TypeAdapter(list[PendingOperation])

_logger = logging.getLogger(__name__)


class CalorieRemote(Protocol):
    """Remote persistence service for a user's calorie day."""

    async def get_today(self, user_id: str) -> RemoteDay:
        """Return the remote snapshot of today."""

    async def add_meal(self, user_id: str, entry: MealEntry) -> RemoteDay:
        """Add a meal and return the updated day."""

    async def set_goal(self, user_id: str, daily_goal: int) -> None:
        """Replace the daily goal."""

    async def reset_today(self, user_id: str) -> None:
        """Clear today's meals."""


@dataclass
class SyncService:
    """Push mutations to the remote, falling back to local storage.

    Every mutation is committed to the local store regardless of the remote
    outcome. Remote failures never reach the caller; they turn the result into
    ``LOCAL_FALLBACK`` and queue the operation for a later ``flush_pending``.
    Without a user id or a remote, operations are ``LOCAL_ONLY``.
    """

    store: EntryStore
    remote: CalorieRemote | None = None
    user_id: str | None = None

    @property
    def remote_enabled(self) -> bool:
        """Return True when mutations are pushed to a remote."""
        return self.remote is not None and bool(self.user_id)

    async def add_meal(  # noqa: PLR0913
        self,
        name: object,
        calories: object,
        category: MealCategory | str = MealCategory.BREAKFAST,
        *,
        source: MealSource = MealSource.CUSTOM_MEAL,
        protein_g: object = 0.0,
        carbs_g: object = 0.0,
        fat_g: object = 0.0,
    ) -> SyncResult:
        """Log a meal remotely and locally."""
        entry = self.store.build_entry(
            name,
            calories,
            category,
            source=source,
            protein_g=protein_g,
            carbs_g=carbs_g,
            fat_g=fat_g,
        )
        phase = await self._push(
            "add_meal",
            lambda remote, user_id: remote.add_meal(user_id, entry),
            PendingKind.ADD_MEAL,
            entry=entry,
        )
        self.store.append(entry)
        return SyncResult(phase=phase, progress=self.store.progress(), entry=entry)

    async def set_goal(self, value: object) -> SyncResult:
        """Replace the daily goal remotely and locally."""
        goal = validate_goal(value)
        phase = await self._push(
            "set_goal",
            lambda remote, user_id: remote.set_goal(user_id, goal),
            PendingKind.SET_GOAL,
            daily_goal=goal,
        )
        self.store.set_goal(goal)
        return SyncResult(phase=phase, progress=self.store.progress())

    async def reset_today(self) -> SyncResult:
        """Clear today's meals remotely and locally."""
        phase = await self._push(
            "reset",
            lambda remote, user_id: remote.reset_today(user_id),
            PendingKind.RESET,
        )
        self.store.reset_today()
        return SyncResult(phase=phase, progress=self.store.progress())

    async def refresh_today(self) -> SyncResult:
        """Return today's progress, preferring the remote snapshot."""
        if not self.remote_enabled:
            return SyncResult(
                phase=SyncPhase.LOCAL_ONLY, progress=self.store.progress()
            )
        await self.flush_pending()
        if self.pending_operations():
            return SyncResult(
                phase=SyncPhase.LOCAL_FALLBACK, progress=self.store.progress()
            )
        try:
            day = await self.remote.get_today(self.user_id)
        except RemoteUnavailable as exc:
            _logger.warning("Remote read failed for user=%s: %s", self.user_id, exc)
            return SyncResult(
                phase=SyncPhase.LOCAL_FALLBACK, progress=self.store.progress()
            )
        entries = entries_from_remote(day.meals, self.store.clock())
        goal = day.daily_goal if day.daily_goal and day.daily_goal > 0 else None
        self.store.replace_today(entries, goal)
        return SyncResult(phase=SyncPhase.CONFIRMED, progress=self.store.progress())

    async def flush_pending(self) -> int:
        """Replay queued operations in order and return how many succeeded."""
        if not self.remote_enabled:
            return 0
        flushed = 0
        for operation in self.pending_operations():
            try:
                await self._replay(operation)
            except RemoteUnavailable as exc:
                _logger.warning(
                    "Replay of %s failed for user=%s: %s",
                    operation.kind,
                    self.user_id,
                    exc,
                )
                break
            self._dequeue(operation.id)
            flushed += 1
        if flushed:
            _logger.info(
                "Flushed %s pending operations for user=%s", flushed, self.user_id
            )
        return flushed

    def pending_operations(self) -> list[PendingOperation]:
        """Return queued operations, oldest first."""
        key = self._pending_key()
        raw = self.store.storage.get(key)
        if raw is None:
            return []
        try:
            return decode_pending(raw)
        except MalformedLocalState as exc:
            _logger.warning("Resetting local state: %s", exc)
            self.store.storage.remove(key)
            return []

    async def _push(
        self,
        action: str,
        call: Callable[[CalorieRemote, str], Awaitable[object]],
        kind: PendingKind,
        *,
        entry: MealEntry | None = None,
        daily_goal: int | None = None,
    ) -> SyncPhase:
        """Attempt the remote call and return the terminal phase."""
        if not self.remote_enabled:
            return SyncPhase.LOCAL_ONLY
        _logger.debug(
            "%s for user=%s: %s", action, self.user_id, SyncPhase.PENDING_REMOTE
        )
        operation = PendingOperation(
            id=str(uuid4()),
            kind=kind,
            queued_at=self.store.clock(),
            entry=entry,
            daily_goal=daily_goal,
        )
        # Queued operations must reach the remote before this one.
        await self.flush_pending()
        if self.pending_operations():
            self._enqueue(operation)
            return SyncPhase.LOCAL_FALLBACK
        try:
            await call(self.remote, self.user_id)
        except RemoteUnavailable as exc:
            _logger.warning(
                "Remote %s failed for user=%s: %s", action, self.user_id, exc
            )
            self._enqueue(operation)
            return SyncPhase.LOCAL_FALLBACK
        return SyncPhase.CONFIRMED

    async def _replay(self, operation: PendingOperation) -> None:
        if operation.kind == PendingKind.ADD_MEAL and operation.entry is not None:
            await self.remote.add_meal(self.user_id, operation.entry)
        elif operation.kind == PendingKind.SET_GOAL and operation.daily_goal:
            await self.remote.set_goal(self.user_id, operation.daily_goal)
        elif operation.kind == PendingKind.RESET:
            await self.remote.reset_today(self.user_id)

    def _enqueue(self, operation: PendingOperation) -> None:
        queue = self.pending_operations()
        if operation.kind == PendingKind.RESET:
            queue = [op for op in queue if op.kind != PendingKind.ADD_MEAL]
        elif operation.kind == PendingKind.SET_GOAL:
            queue = [op for op in queue if op.kind != PendingKind.SET_GOAL]
        self._write_pending([*queue, operation])

    def _dequeue(self, operation_id: str) -> None:
        queue = [op for op in self.pending_operations() if op.id != operation_id]
        self._write_pending(queue)

    def _write_pending(self, queue: list[PendingOperation]) -> None:
        commit(
            self.store.storage,
            {self._pending_key(): _PENDING.dump_json(queue).decode("utf-8")},
        )

    def _pending_key(self) -> str:
        return owner_key(self.store.owner, PENDING_KEY)


def entries_from_remote(meals: list[RemoteMeal], now: datetime) -> list[MealEntry]:
    """Convert remote rows into entries with non-decreasing timestamps."""
    entries: list[MealEntry] = []
    latest: datetime | None = None
    for meal in meals:
        timestamp = meal.timestamp or now
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=now.tzinfo)
        if latest is not None and timestamp < latest:
            timestamp = latest
        latest = timestamp
        entries.append(
            MealEntry(
                id=meal.id or str(uuid4()),
                name=meal.name,
                calories=meal.calories,
                protein_g=meal.protein_g,
                carbs_g=meal.carbs_g,
                fat_g=meal.fat_g,
                category=resolve_category(meal.category).value,
                timestamp=timestamp,
                source=MealSource.CUSTOM_MEAL,
            )
        )
    return entries


def decode_pending(raw: str) -> list[PendingOperation]:
    """Parse the persisted outbox, raising MalformedLocalState on bad data."""
    try:
        return _PENDING.validate_json(raw)
    except SchemaError as exc:
        raise MalformedLocalState(PENDING_KEY, str(exc)) from exc
