"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from growth_tracker.api.models import (
    AddGoalRequest,
    AddMealRequest,
    AssistantRequest,
    SetGoalRequest,
)
from growth_tracker.app_logging import configure_logging
from growth_tracker.containers import AppContainer, UserWorkspace
from growth_tracker.domain.catalog import CatalogItem
from growth_tracker.domain.errors import ValidationError
from growth_tracker.domain.goals import GrowthGoal
from growth_tracker.domain.meals import DailyProgress, MealSource
from growth_tracker.domain.sync import SyncResult


def get_workspace(
    request: Request, x_user_id: str | None = Header(default=None)
) -> UserWorkspace:
    """Resolve the caller's workspace from the opaque user id header."""
    container: AppContainer = request.app.state.container
    return container.open_workspace(x_user_id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level.upper())
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/calories/today")
    async def calories_today(
        workspace: UserWorkspace = Depends(get_workspace),
    ) -> dict[str, object]:
        """Return today's progress, refreshed from the remote when possible."""
        result = await workspace.sync_service.refresh_today()
        return _sync_payload(result)

    @app.post("/calories/meals")
    async def add_meal(
        body: AddMealRequest, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Log a meal."""
        if body.catalog_item_id:
            item = container.catalog.get(body.catalog_item_id)
            if item is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
            result = await workspace.sync_service.add_meal(
                item.name,
                item.calories,
                item.category,
                source=MealSource.FOOD_RECOMMENDATION,
                protein_g=item.protein_g,
                carbs_g=item.carbs_g,
                fat_g=item.fat_g,
            )
        else:
            result = await workspace.sync_service.add_meal(
                body.name,
                body.calories,
                body.category,
                protein_g=body.protein_g,
                carbs_g=body.carbs_g,
                fat_g=body.fat_g,
            )
        return _sync_payload(result)

    @app.put("/calories/goal")
    async def set_goal(
        body: SetGoalRequest, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Replace the daily calorie goal."""
        result = await workspace.sync_service.set_goal(body.daily_goal)
        return _sync_payload(result)

    @app.post("/calories/reset")
    async def reset_today(
        workspace: UserWorkspace = Depends(get_workspace),
    ) -> dict[str, object]:
        """Clear today's meals."""
        result = await workspace.sync_service.reset_today()
        return _sync_payload(result)

    @app.post("/calories/sync")
    async def sync_pending(
        workspace: UserWorkspace = Depends(get_workspace),
    ) -> dict[str, object]:
        """Replay operations saved offline."""
        flushed = await workspace.sync_service.flush_pending()
        return {
            "flushed": flushed,
            "pending": len(workspace.sync_service.pending_operations()),
        }

    @app.get("/calories/history")
    async def history(
        workspace: UserWorkspace = Depends(get_workspace),
    ) -> dict[str, object]:
        """Return per-day calorie totals."""
        return {
            "days": [
                {
                    "day": day.day.isoformat(),
                    "calories": day.calories,
                    "meals": day.meals,
                }
                for day in workspace.entry_store.history_totals()
            ]
        }

    @app.get("/catalog/{category}")
    async def catalog(category: str, q: str | None = None) -> dict[str, object]:
        """List or search catalog foods for a meal category."""
        items = container.catalog.search(category, q)
        return {"items": [_catalog_payload(item) for item in items]}

    @app.get("/goals")
    async def list_goals(
        workspace: UserWorkspace = Depends(get_workspace),
    ) -> dict[str, object]:
        """Return growth goals with the completion rate."""
        return _goals_payload(workspace)

    @app.post("/goals", status_code=status.HTTP_201_CREATED)
    async def add_goal(
        body: AddGoalRequest, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Create a growth goal."""
        goal_id = workspace.goal_tracker.add(body.text, body.category)
        payload = _goals_payload(workspace)
        payload["id"] = goal_id
        return payload

    @app.post("/goals/{goal_id}/toggle")
    async def toggle_goal(
        goal_id: str, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Flip a goal's completion state."""
        goal = workspace.goal_tracker.toggle(goal_id)
        if goal is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _goal_payload(goal)

    @app.delete("/goals/{goal_id}")
    async def delete_goal(
        goal_id: str, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Delete a growth goal."""
        if not workspace.goal_tracker.remove(goal_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _goals_payload(workspace)

    @app.post("/assistant/messages")
    async def ask_assistant(
        body: AssistantRequest, workspace: UserWorkspace = Depends(get_workspace)
    ) -> dict[str, object]:
        """Ask the growth assistant a question."""
        reply = await container.assistant_service.ask(
            body.prompt,
            goals=workspace.goal_tracker.list_goals(),
            progress=workspace.entry_store.progress(),
            memory=workspace.topic_memory,
        )
        return {
            "reply": reply.text,
            "source": reply.source.value,
            "topics": list(reply.topics),
        }

    return app


def _sync_payload(result: SyncResult) -> dict[str, object]:
    payload: dict[str, object] = {
        "status": result.status.value,
        "notice": result.notice,
        "progress": _progress_payload(result.progress),
    }
    if result.entry is not None:
        payload["entry"] = result.entry.model_dump(mode="json")
    return payload


def _progress_payload(progress: DailyProgress) -> dict[str, object]:
    return {
        "daily_goal": progress.daily_goal,
        "consumed": progress.consumed,
        "remaining": progress.remaining,
        "percentage": progress.percentage,
        "over_goal": progress.over_goal,
        "category_totals": {
            category.value: total
            for category, total in progress.category_totals.items()
        },
        "macros": {
            "protein_g": progress.macros.protein_g,
            "carbs_g": progress.macros.carbs_g,
            "fat_g": progress.macros.fat_g,
        },
        "meals": [entry.model_dump(mode="json") for entry in progress.entries],
    }


def _catalog_payload(item: CatalogItem) -> dict[str, object]:
    return {
        "id": item.id,
        "name": item.name,
        "category": item.category.value,
        "calories": item.calories,
        "protein_g": item.protein_g,
        "carbs_g": item.carbs_g,
        "fat_g": item.fat_g,
        "benefits": list(item.benefits),
    }


def _goal_payload(goal: GrowthGoal) -> dict[str, object]:
    return goal.model_dump(mode="json")


def _goals_payload(workspace: UserWorkspace) -> dict[str, object]:
    goals = workspace.goal_tracker.list_goals()
    return {
        "goals": [_goal_payload(goal) for goal in goals],
        "completion_rate": workspace.goal_tracker.completion_rate(),
    }
