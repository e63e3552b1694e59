"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from growth_tracker.config import Settings
from growth_tracker.containers import AppContainer
from growth_tracker.domain.errors import RemoteUnavailable
from growth_tracker.domain.meals import MealEntry
from growth_tracker.domain.sync import RemoteDay
from growth_tracker.services.assistant import AssistantClient, AssistantService
from growth_tracker.services.catalog import FoodCatalog
from growth_tracker.services.entries import EntryStore
from growth_tracker.services.storage import InMemoryStorage
from growth_tracker.services.sync import CalorieRemote
from growth_tracker.services.topics import TopicLexicon


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FakeCalorieRemote(CalorieRemote):
    """Fake remote that records calls and can be switched offline."""

    day: RemoteDay = field(default_factory=RemoteDay)
    fail: bool = False
    calls: list[tuple[str, str, object]] = field(default_factory=list)

    async def get_today(self, user_id: str) -> RemoteDay:
        self._check("get_today")
        self.calls.append(("get_today", user_id, None))
        return self.day

    async def add_meal(self, user_id: str, entry: MealEntry) -> RemoteDay:
        self._check("add_meal")
        self.calls.append(("add_meal", user_id, entry.name))
        return self.day

    async def set_goal(self, user_id: str, daily_goal: int) -> None:
        self._check("set_goal")
        self.calls.append(("set_goal", user_id, daily_goal))

    async def reset_today(self, user_id: str) -> None:
        self._check("reset_today")
        self.calls.append(("reset_today", user_id, None))

    def _check(self, action: str) -> None:
        if self.fail:
            raise RemoteUnavailable(f"{action} is offline")


@dataclass
class FakeAssistantClient(AssistantClient):
    """Fake generative-text client returning a fixed reply."""

    reply: str = "Drink water and keep moving! 💪"
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        storage_path=str(tmp_path / "state.json"),
        remote_backend="rest",
        calorie_api_base_url="https://calories.example.com",
        openai_api_key="openai-key",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def entry_store(storage: InMemoryStorage, clock: FixedClock) -> EntryStore:
    return EntryStore(storage=storage, owner="user-1", clock=clock)


@pytest.fixture
def calorie_remote() -> FakeCalorieRemote:
    return FakeCalorieRemote()


@pytest.fixture
def assistant_client() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def container(
    settings: Settings,
    calorie_remote: FakeCalorieRemote,
    assistant_client: FakeAssistantClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    assistant_service = AssistantService(
        client=assistant_client,
        lexicon=TopicLexicon.load(),
        model=settings.openai_model,
    )
    return AppContainer(
        settings=settings,
        storage=InMemoryStorage(),
        catalog=FoodCatalog.create(),
        calorie_remote=calorie_remote,
        assistant_service=assistant_service,
        close_resources=close_resources,
    )
