"""Meal endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from health_tracker.api.dependencies import ensure_owner, require_user
from health_tracker.api.models import (  # noqa: TC001
    FoodPayload,
    MealCreateRequest,
    MealDuplicateRequest,
    MealFoodsRequest,
    MealStatusRequest,
    MealUpdateRequest,
    food_payloads,
)
from health_tracker.domain.meals import Meal

if TYPE_CHECKING:
    from health_tracker.containers import AppContainer

router = APIRouter(prefix="/meals", tags=["meals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_meal(
    body: MealCreateRequest, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Plan a meal."""
    container: AppContainer = request.app.state.container
    details = body.model_dump(
        exclude={"name", "meal_type", "day", "foods"}, exclude_none=True
    )
    meal = container.meal_service.create_meal(
        user_id,
        body.name,
        body.meal_type,
        body.day,
        food_payloads(body.foods),
        **details,
    )
    return {"meal": meal}


@router.get("/search")
async def search_meals(
    request: Request,
    q: str | None = None,
    meal_type: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 20,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Search meals by name."""
    container: AppContainer = request.app.state.container
    meals = container.meal_service.search_meals(
        user_id, q, meal_type, status_filter, limit
    )
    return {"meals": meals, "count": len(meals)}


@router.get("/date/{day}")
async def meals_for_date(
    day: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return a day's meals grouped by type with daily totals."""
    container: AppContainer = request.app.state.container
    return {"day": container.meal_service.meals_for_date(user_id, day)}


@router.get("/week/{day}")
async def meals_for_week(
    day: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return the weekly meal plan containing a date."""
    container: AppContainer = request.app.state.container
    meals = container.meal_service.meals_for_week(user_id, day)
    return {"meals": meals, "count": len(meals)}


@router.get("/{meal_id}")
async def get_meal(
    meal_id: UUID, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return {"meal": _owned_meal(container, meal_id, user_id)}


@router.patch("/{meal_id}")
async def update_meal(
    meal_id: UUID,
    body: MealUpdateRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Update descriptive meal fields."""
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    changes = body.model_dump(exclude_unset=True)
    return {"meal": container.meal_service.update_details(meal, **changes)}


@router.put("/{meal_id}/foods")
async def set_foods(
    meal_id: UUID,
    body: MealFoodsRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Replace a meal's foods."""
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    updated = container.meal_service.set_foods(meal, food_payloads(body.foods))
    return {"meal": updated}


@router.post("/{meal_id}/foods")
async def add_food(
    meal_id: UUID,
    body: FoodPayload,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    updated = container.meal_service.add_food(meal, food_payloads([body])[0])
    return {"meal": updated}


@router.delete("/{meal_id}/foods/{index}")
async def remove_food(
    meal_id: UUID, index: int, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    return {"meal": container.meal_service.remove_food(meal, index)}


@router.patch("/{meal_id}/status")
async def update_status(
    meal_id: UUID,
    body: MealStatusRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Move a meal through planned, prepared, consumed or skipped."""
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    return {"meal": container.meal_service.update_status(meal, body.status)}


@router.post("/{meal_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_meal(
    meal_id: UUID,
    body: MealDuplicateRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Copy a meal to another date as a planned meal."""
    container: AppContainer = request.app.state.container
    meal = _owned_meal(container, meal_id, user_id)
    duplicate = container.meal_service.duplicate_for_date(
        meal, body.day, body.meal_type
    )
    return {"meal": duplicate}


@router.delete("/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal(
    meal_id: UUID, request: Request, user_id: str = Depends(require_user)
) -> None:
    container: AppContainer = request.app.state.container
    _owned_meal(container, meal_id, user_id)
    container.meal_service.delete_meal(meal_id)


def _owned_meal(container: AppContainer, meal_id: UUID, user_id: str) -> Meal:
    return ensure_owner(container.meal_service.get_meal(meal_id), user_id, "Meal")
