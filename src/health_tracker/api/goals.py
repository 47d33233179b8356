"""Goal endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, status

from health_tracker.api.dependencies import ensure_owner, require_user
from health_tracker.api.models import (  # noqa: TC001
    CustomGoalCompletionRequest,
    GoalCreateRequest,
    GoalUpdateRequest,
)
from health_tracker.domain.errors import NotFoundError

if TYPE_CHECKING:
    from health_tracker.containers import AppContainer

router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(
    body: GoalCreateRequest, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Create the goal for a day."""
    container: AppContainer = request.app.state.container
    goal = container.goal_service.create(
        user_id,
        body.day,
        body.targets,
        body.nutritional_targets,
        _custom_goals(body.custom_goals),
    )
    return {"goal": goal}


@router.get("/current")
async def current_goal(
    request: Request,
    timezone: str | None = None,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Return today's goal in the given (or configured) timezone."""
    container: AppContainer = request.app.state.container
    goal = container.goal_service.get_current(
        user_id, timezone or container.settings.timezone
    )
    if goal is None:
        raise NotFoundError("No goals set for today")
    return {"goal": goal}


@router.get("/range")
async def goals_range(
    start: str, end: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return active goals in an inclusive date range."""
    container: AppContainer = request.app.state.container
    goals = container.goal_service.list_range(user_id, start, end)
    return {"goals": goals, "count": len(goals)}


@router.get("/date/{day}")
async def goal_for_date(
    day: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return the active goal for a date."""
    container: AppContainer = request.app.state.container
    goal = container.goal_service.get_for_date(user_id, day)
    if goal is None:
        raise NotFoundError(f"No goals found for {day}")
    return {"goal": goal}


@router.get("/{goal_id}")
async def get_goal(
    goal_id: UUID, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    goal = ensure_owner(container.goal_service.get(goal_id), user_id, "Goal")
    return {"goal": goal}


@router.patch("/{goal_id}")
async def update_goal(
    goal_id: UUID,
    body: GoalUpdateRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Merge target changes into a goal."""
    container: AppContainer = request.app.state.container
    ensure_owner(container.goal_service.get(goal_id), user_id, "Goal")
    goal = container.goal_service.update(
        goal_id,
        body.targets,
        body.nutritional_targets,
        _custom_goals(body.custom_goals),
    )
    return {"goal": goal}


@router.delete("/{goal_id}")
async def deactivate_goal(
    goal_id: UUID, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Soft-delete a goal."""
    container: AppContainer = request.app.state.container
    ensure_owner(container.goal_service.get(goal_id), user_id, "Goal")
    return {"goal": container.goal_service.deactivate(goal_id)}


@router.patch("/{goal_id}/custom/{custom_goal_id}")
async def set_custom_goal_completed(
    goal_id: UUID,
    custom_goal_id: str,
    body: CustomGoalCompletionRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    ensure_owner(container.goal_service.get(goal_id), user_id, "Goal")
    custom_goal = container.goal_service.set_custom_goal_completed(
        goal_id, custom_goal_id, body.is_completed
    )
    return {"custom_goal": custom_goal}


def _custom_goals(items: list | None) -> list[dict[str, object]] | None:
    if items is None:
        return None
    return [item.model_dump() for item in items]
