"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from growth_tracker.adapters.calorie_api_client import HttpxCalorieApiClient
from growth_tracker.adapters.file_storage import JsonFileStorage
from growth_tracker.adapters.openai_assistant_client import OpenAIAssistantClient
from growth_tracker.adapters.supabase_calorie_repository import (
    SupabaseCalorieRepository,
)
from growth_tracker.config import Settings, resolve_remote_backend
from growth_tracker.services.assistant import (
    AssistantClient,
    AssistantService,
    TopicMemory,
)
from growth_tracker.services.catalog import FoodCatalog
from growth_tracker.services.entries import EntryStore
from growth_tracker.services.goals import GoalTracker
from growth_tracker.services.storage import ANONYMOUS_OWNER, KeyValueStore
from growth_tracker.services.sync import CalorieRemote, SyncService
from growth_tracker.services.topics import TopicLexicon

_logger = logging.getLogger(__name__)


@dataclass
class UserWorkspace:
    """Services bound to one owner's state."""

    owner: str
    entry_store: EntryStore
    goal_tracker: GoalTracker
    sync_service: SyncService
    topic_memory: TopicMemory


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage: KeyValueStore
    catalog: FoodCatalog
    calorie_remote: CalorieRemote | None
    assistant_service: AssistantService
    close_resources: Callable[[], Awaitable[None]]

    def open_workspace(self, user_id: str | None) -> UserWorkspace:
        """Build the per-owner services for a user, or the anonymous session."""
        owner = (user_id or "").strip() or ANONYMOUS_OWNER
        remote_user = None if owner == ANONYMOUS_OWNER else owner
        entry_store = EntryStore(
            storage=self.storage,
            owner=owner,
            timezone_name=self.settings.timezone,
            default_goal=self.settings.default_daily_goal,
            history_retention_days=self.settings.history_retention_days,
        )
        return UserWorkspace(
            owner=owner,
            entry_store=entry_store,
            goal_tracker=GoalTracker(storage=self.storage, owner=owner),
            sync_service=SyncService(
                store=entry_store, remote=self.calorie_remote, user_id=remote_user
            ),
            topic_memory=TopicMemory(
                storage=self.storage,
                owner=owner,
                size=self.settings.assistant_topic_memory,
            ),
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    storage = JsonFileStorage(Path(resolved_settings.storage_path))

    calorie_remote: CalorieRemote | None = None
    api_client: HttpxCalorieApiClient | None = None
    backend = resolve_remote_backend(resolved_settings)
    if backend == "rest":
        api_client = HttpxCalorieApiClient.create(
            base_url=resolved_settings.calorie_api_base_url,
            timeout_seconds=resolved_settings.calorie_api_timeout_seconds,
        )
        calorie_remote = api_client
    elif backend == "supabase":
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        calorie_remote = SupabaseCalorieRepository(
            client=supabase_client, timezone_name=resolved_settings.timezone
        )
    _logger.info("Remote calorie backend: %s", backend)

    openai_client: OpenAIAssistantClient | None = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAIAssistantClient.create(resolved_settings.openai_api_key)
    assistant_client: AssistantClient | None = openai_client
    assistant_service = AssistantService(
        client=assistant_client,
        lexicon=TopicLexicon.load(),
        model=resolved_settings.openai_model,
        temperature=resolved_settings.assistant_temperature,
        max_output_tokens=resolved_settings.assistant_max_output_tokens,
        strict_topics=resolved_settings.assistant_strict_topics,
    )

    async def close_resources() -> None:
        if api_client is not None:
            await api_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        storage=storage,
        catalog=FoodCatalog.create(),
        calorie_remote=calorie_remote,
        assistant_service=assistant_service,
        close_resources=close_resources,
    )
