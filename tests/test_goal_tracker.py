"""Tests for growth goals."""

import pytest

from growth_tracker.domain.errors import ValidationError
from growth_tracker.domain.goals import GrowthCategory
from growth_tracker.services.goals import GOALS_KEY, GoalTracker
from growth_tracker.services.storage import InMemoryStorage, owner_key
from tests.conftest import FixedClock


@pytest.fixture
def tracker(storage: InMemoryStorage, clock: FixedClock) -> GoalTracker:
    return GoalTracker(storage=storage, owner="user-1", clock=clock)


def test_toggle_sets_and_clears_completion(
    tracker: GoalTracker, clock: FixedClock
) -> None:
    goal_id = tracker.add("Meditate for 10 minutes", "mindfulness")

    clock.advance(hours=1)
    completed = tracker.toggle(goal_id)
    reopened = tracker.toggle(goal_id)

    assert completed is not None
    assert completed.completed is True
    assert completed.completed_at == clock.now
    assert reopened is not None
    assert reopened.completed is False
    assert reopened.completed_at is None
    assert tracker.list_goals()[0].completed is False


def test_add_persists_in_creation_order(
    storage: InMemoryStorage, tracker: GoalTracker, clock: FixedClock
) -> None:
    tracker.add("Read 20 pages", GrowthCategory.LEARNING)
    tracker.add("  Call a friend ", "social")

    reloaded = GoalTracker(storage=storage, owner="user-1", clock=clock)
    goals = reloaded.list_goals()

    assert [goal.text for goal in goals] == ["Read 20 pages", "Call a friend"]
    assert goals[0].category == GrowthCategory.LEARNING
    assert goals[1].created_at == clock.now


@pytest.mark.parametrize(("text", "category"), [("", "health"), ("Nap", "sleep")])
def test_add_rejects_invalid_goal(
    tracker: GoalTracker, text: str, category: str
) -> None:
    with pytest.raises(ValidationError):
        tracker.add(text, category)

    assert tracker.list_goals() == []


def test_remove_and_missing_ids(tracker: GoalTracker) -> None:
    goal_id = tracker.add("Run 5k")

    assert tracker.toggle("missing") is None
    assert tracker.remove("missing") is False
    assert tracker.remove(goal_id) is True
    assert tracker.list_goals() == []


def test_completion_rate(tracker: GoalTracker) -> None:
    first = tracker.add("Run 5k")
    tracker.add("Stretch")
    tracker.add("Sleep by 11")

    assert tracker.completion_rate() == 0
    tracker.toggle(first)
    assert tracker.completion_rate() == 33


def test_malformed_goals_reset(tracker: GoalTracker, storage: InMemoryStorage) -> None:
    key = owner_key("user-1", GOALS_KEY)
    storage.set(key, '{"goals": "nope"}')

    assert tracker.list_goals() == []
    assert storage.get(key) is None
