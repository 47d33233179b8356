"""Completion statistics endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from health_tracker.api.dependencies import require_user
from health_tracker.domain.dates import today

if TYPE_CHECKING:
    from health_tracker.containers import AppContainer

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/weekly")
async def weekly_stats(
    request: Request,
    date: str | None = None,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Return completion for the week containing ``date`` (default today)."""
    container: AppContainer = request.app.state.container
    day = date or today(
        container.progress_service.clock, container.settings.timezone
    ).isoformat()
    return {"stats": container.stats_service.weekly(user_id, day)}


@router.get("/range")
async def range_stats(
    start: str, end: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return each stored day in a range with its goal and completion."""
    container: AppContainer = request.app.state.container
    days = container.stats_service.progress_range(user_id, start, end)
    return {"days": days, "count": len(days)}
