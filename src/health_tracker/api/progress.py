"""Progress ledger endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, status

from health_tracker.api.dependencies import ensure_owner, require_user
from health_tracker.api.models import (  # noqa: TC001
    ActivityRequest,
    CustomProgressUpdateRequest,
    ProgressUpdateRequest,
)
from health_tracker.domain.progress import ActivityInput, Progress

if TYPE_CHECKING:
    from health_tracker.containers import AppContainer

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/range")
async def progress_range(
    start: str, end: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return stored progress in an inclusive date range."""
    container: AppContainer = request.app.state.container
    progress = container.progress_service.list_range(user_id, start, end)
    return {"progress": progress, "count": len(progress)}


@router.get("/date/{day}")
async def progress_for_date(
    day: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return the day's progress, creating it on first access."""
    container: AppContainer = request.app.state.container
    return {"progress": container.progress_service.get_for_date(user_id, day)}


@router.delete("/date/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_progress_for_date(
    day: str, request: Request, user_id: str = Depends(require_user)
) -> None:
    container: AppContainer = request.app.state.container
    container.progress_service.delete_for_day(user_id, day)


@router.post("/{progress_id}/activities", status_code=status.HTTP_201_CREATED)
async def add_activity(
    progress_id: UUID,
    body: ActivityRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Append an activity to the day's ledger."""
    container: AppContainer = request.app.state.container
    progress = _owned_progress(container, progress_id, user_id)
    updated = container.progress_service.add_activity(
        progress,
        ActivityInput(
            activity_type=body.activity_type,
            description=body.description,
            value=body.value,
            unit=body.unit,
            food_id=body.food_id,
            exercise_type=body.exercise_type,
            metadata=body.metadata,
        ),
    )
    return {"progress": updated}


@router.delete("/{progress_id}/activities/{activity_id}")
async def remove_activity(
    progress_id: UUID,
    activity_id: UUID,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Remove an activity and reverse its effect."""
    container: AppContainer = request.app.state.container
    progress = _owned_progress(container, progress_id, user_id)
    updated = container.progress_service.remove_activity(progress, activity_id)
    return {"progress": updated}


@router.patch("/{progress_id}")
async def update_progress(
    progress_id: UUID,
    body: ProgressUpdateRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Add to, set, or subtract from one counter."""
    container: AppContainer = request.app.state.container
    progress = _owned_progress(container, progress_id, user_id)
    updated = container.progress_service.update_progress(
        progress, body.field_name, body.value, body.operation
    )
    return {"progress": updated}


@router.patch("/{progress_id}/custom")
async def update_custom_progress(
    progress_id: UUID,
    body: CustomProgressUpdateRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    progress = _owned_progress(container, progress_id, user_id)
    updated = container.progress_service.update_custom_progress(
        progress, body.custom_goal_id, body.value, body.operation
    )
    return {"progress": updated}


def _owned_progress(
    container: AppContainer, progress_id: UUID, user_id: str
) -> Progress:
    return ensure_owner(
        container.progress_service.get(progress_id), user_id, "Progress"
    )
