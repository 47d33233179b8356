"""Pydantic request bodies for the HTTP API.

Shapes only; value rules live in the services so every caller gets the same
errors.
"""

from typing import Any

from pydantic import BaseModel, Field


class CustomGoalPayload(BaseModel):
    """Custom goal payload."""

    id: str | None = None
    name: str
    target: float
    unit: str
    category: str = "other"
    is_completed: bool = False


class GoalCreateRequest(BaseModel):
    """Body for creating a day's goal."""

    day: str = Field(alias="date")
    targets: dict[str, float]
    nutritional_targets: dict[str, float] | None = None
    custom_goals: list[CustomGoalPayload] | None = None


class GoalUpdateRequest(BaseModel):
    """Body for merging goal changes."""

    targets: dict[str, float] | None = None
    nutritional_targets: dict[str, float] | None = None
    custom_goals: list[CustomGoalPayload] | None = None


class CustomGoalCompletionRequest(BaseModel):
    is_completed: bool


class ActivityRequest(BaseModel):
    """Body for appending an activity to the ledger."""

    activity_type: str = Field(alias="type")
    description: str
    value: float
    unit: str
    food_id: str | None = None
    exercise_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProgressUpdateRequest(BaseModel):
    """Body for a direct counter update."""

    field_name: str = Field(alias="type")
    value: float
    operation: str = "add"


class CustomProgressUpdateRequest(BaseModel):
    custom_goal_id: str
    value: float
    operation: str = "add"


class FoodPayload(BaseModel):
    """A food inside a meal; calories may be omitted when food_id is given."""

    name: str | None = None
    quantity: float
    unit: str
    calories: float | None = None
    nutrition: dict[str, float] | None = None
    food_id: str | None = None


class MealCreateRequest(BaseModel):
    """Body for planning a meal."""

    name: str
    meal_type: str
    day: str = Field(alias="date")
    foods: list[FoodPayload] = Field(default_factory=list)
    description: str | None = None
    planned_time: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    rating: int | None = None


class MealUpdateRequest(BaseModel):
    """Body for updating descriptive meal fields."""

    name: str | None = None
    meal_type: str | None = None
    description: str | None = None
    planned_time: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    rating: int | None = None


class MealFoodsRequest(BaseModel):
    foods: list[FoodPayload]


class MealStatusRequest(BaseModel):
    status: str


class MealDuplicateRequest(BaseModel):
    day: str = Field(alias="date")
    meal_type: str | None = None


def food_payloads(foods: list[FoodPayload]) -> list[dict[str, object]]:
    """Convert food bodies to the mappings the meal service validates."""
    return [food.model_dump(exclude_none=True) for food in foods]
