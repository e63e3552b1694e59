"""Tests for remote-then-local synchronization."""

import asyncio
from datetime import UTC, datetime

import pytest

from growth_tracker.domain.errors import ValidationError
from growth_tracker.domain.sync import (
    PendingKind,
    RemoteDay,
    RemoteMeal,
    SyncPhase,
    SyncStatus,
)
from growth_tracker.services.entries import EntryStore
from growth_tracker.services.storage import InMemoryStorage, owner_key
from growth_tracker.services.sync import (
    PENDING_KEY,
    SyncService,
    entries_from_remote,
)
from tests.conftest import FakeCalorieRemote, FixedClock


@pytest.fixture
def service(
    entry_store: EntryStore, calorie_remote: FakeCalorieRemote
) -> SyncService:
    return SyncService(store=entry_store, remote=calorie_remote, user_id="user-1")


def test_add_meal_confirmed_by_remote(
    service: SyncService, calorie_remote: FakeCalorieRemote
) -> None:
    result = asyncio.run(service.add_meal("Toast", 250, "breakfast"))

    assert result.phase == SyncPhase.CONFIRMED
    assert result.status == SyncStatus.SYNCED
    assert result.notice == "Saved"
    assert result.entry is not None
    assert result.progress.consumed == 250
    assert calorie_remote.calls == [("add_meal", "user-1", "Toast")]
    assert service.pending_operations() == []


def test_add_meal_falls_back_when_remote_fails(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    calorie_remote.fail = True

    result = asyncio.run(service.add_meal("Toast", 250, "breakfast"))

    assert result.status == SyncStatus.OFFLINE
    assert result.notice == "Saved offline"
    assert [entry.name for entry in entry_store.list_today()] == ["Toast"]
    assert entry_store.consumed_total() == 250
    pending = service.pending_operations()
    assert [op.kind for op in pending] == [PendingKind.ADD_MEAL]
    assert pending[0].entry == result.entry


def test_anonymous_session_stays_local(
    entry_store: EntryStore, calorie_remote: FakeCalorieRemote
) -> None:
    service = SyncService(store=entry_store, remote=calorie_remote, user_id=None)

    result = asyncio.run(service.add_meal("Toast", 250))

    assert service.remote_enabled is False
    assert result.phase == SyncPhase.LOCAL_ONLY
    assert result.notice == "Saved on this device"
    assert calorie_remote.calls == []
    assert asyncio.run(service.flush_pending()) == 0


def test_invalid_input_never_reaches_remote(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(service.add_meal("", 100))
    with pytest.raises(ValidationError):
        asyncio.run(service.set_goal(-5))

    assert calorie_remote.calls == []
    assert entry_store.list_today() == []
    assert entry_store.daily_goal() == 2000


def test_set_goal_and_reset_commit_locally(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    asyncio.run(service.add_meal("Toast", 250))
    goal_result = asyncio.run(service.set_goal(1800))
    reset_result = asyncio.run(service.reset_today())

    assert goal_result.progress.daily_goal == 1800
    assert reset_result.status == SyncStatus.SYNCED
    assert entry_store.list_today() == []
    assert entry_store.daily_goal() == 1800
    assert [call[0] for call in calorie_remote.calls] == [
        "add_meal",
        "set_goal",
        "reset_today",
    ]


def test_flush_replays_in_order(
    service: SyncService, calorie_remote: FakeCalorieRemote
) -> None:
    calorie_remote.fail = True
    asyncio.run(service.add_meal("Oats", 300))
    asyncio.run(service.add_meal("Salad", 400))
    calorie_remote.fail = False

    flushed = asyncio.run(service.flush_pending())

    assert flushed == 2
    assert calorie_remote.calls == [
        ("add_meal", "user-1", "Oats"),
        ("add_meal", "user-1", "Salad"),
    ]
    assert service.pending_operations() == []


def test_new_mutation_waits_behind_queue(
    service: SyncService, calorie_remote: FakeCalorieRemote
) -> None:
    calorie_remote.fail = True
    asyncio.run(service.add_meal("Oats", 300))
    calorie_remote.fail = False

    result = asyncio.run(service.add_meal("Salad", 400))

    assert result.status == SyncStatus.SYNCED
    assert [call[2] for call in calorie_remote.calls] == ["Oats", "Salad"]


def test_queue_is_compacted(
    service: SyncService, calorie_remote: FakeCalorieRemote
) -> None:
    calorie_remote.fail = True
    asyncio.run(service.add_meal("Oats", 300))
    asyncio.run(service.set_goal(1800))
    asyncio.run(service.set_goal(1900))
    asyncio.run(service.reset_today())

    pending = service.pending_operations()

    assert [op.kind for op in pending] == [PendingKind.SET_GOAL, PendingKind.RESET]
    assert pending[0].daily_goal == 1900


def test_refresh_today_adopts_remote_snapshot(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    calorie_remote.day = RemoteDay.model_validate(
        {
            "totalCalories": 500,
            "dailyGoal": 1800,
            "meals": [
                {
                    "_id": "m1",
                    "name": "Salad",
                    "calories": 300,
                    "category": "Lunch",
                    "createdAt": "2024-05-01T08:00:00Z",
                },
                {"name": "Cookie", "calories": 200, "category": "snacks"},
            ],
        }
    )

    result = asyncio.run(service.refresh_today())

    assert result.status == SyncStatus.SYNCED
    today = entry_store.list_today()
    assert [(entry.name, entry.category) for entry in today] == [
        ("Cookie", "snack"),
        ("Salad", "lunch"),
    ]
    assert today[1].id == "m1"
    assert entry_store.daily_goal() == 1800
    assert result.progress.consumed == 500


def test_refresh_today_ignores_missing_goal(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    entry_store.set_goal(1700)
    calorie_remote.day = RemoteDay.model_validate({"dailyGoal": 0, "meals": []})

    asyncio.run(service.refresh_today())

    assert entry_store.daily_goal() == 1700


def test_refresh_today_keeps_local_state_offline(
    service: SyncService,
    entry_store: EntryStore,
    calorie_remote: FakeCalorieRemote,
) -> None:
    asyncio.run(service.add_meal("Toast", 250))
    calorie_remote.fail = True

    result = asyncio.run(service.refresh_today())

    assert result.status == SyncStatus.OFFLINE
    assert [entry.name for entry in entry_store.list_today()] == ["Toast"]


def test_refresh_today_flushes_queue_first(
    service: SyncService,
    calorie_remote: FakeCalorieRemote,
) -> None:
    calorie_remote.fail = True
    asyncio.run(service.add_meal("Toast", 250))
    calorie_remote.fail = False
    calorie_remote.calls.clear()

    result = asyncio.run(service.refresh_today())

    assert result.status == SyncStatus.SYNCED
    assert calorie_remote.calls[0] == ("add_meal", "user-1", "Toast")


def test_entries_from_remote_keeps_timestamps_ordered() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    meals = [
        RemoteMeal(name="Late", calories=100, timestamp="2024-05-01T10:00:00Z"),
        RemoteMeal(name="Early", calories=100, timestamp="2024-05-01T09:00:00Z"),
    ]

    entries = entries_from_remote(meals, now)

    assert entries[1].timestamp == entries[0].timestamp
    assert all(entry.id for entry in entries)


def test_malformed_queue_is_discarded(
    service: SyncService, storage: InMemoryStorage
) -> None:
    key = owner_key("user-1", PENDING_KEY)
    storage.set(key, "[{]")

    assert service.pending_operations() == []
    assert storage.get(key) is None


def test_refresh_on_a_new_day_archives_yesterday(
    service: SyncService, entry_store: EntryStore, clock: FixedClock
) -> None:
    asyncio.run(service.add_meal("Oats", 300))
    asyncio.run(service.add_meal("Soup", 450))
    clock.advance(days=1)

    result = asyncio.run(service.refresh_today())

    assert result.status == SyncStatus.SYNCED
    assert entry_store.list_today() == []
    assert [entry.name for entry in entry_store.list_history()] == ["Oats", "Soup"]
    assert sum(day.calories for day in entry_store.history_totals()) == 750
