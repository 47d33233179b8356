"""Domain models for meals."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from health_tracker.domain.nutrition import FoodEntry, NutritionTotals

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
MEAL_STATUSES = frozenset({"planned", "prepared", "consumed", "skipped"})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "planned": frozenset({"prepared", "skipped"}),
    "prepared": frozenset({"consumed", "skipped"}),
    "consumed": frozenset(),
    "skipped": frozenset(),
}


@dataclass(frozen=True)
class Meal:
    """A named list of foods with derived totals and a consumption lifecycle."""

    id: UUID
    user_id: str
    name: str
    meal_type: str
    day: date
    foods: tuple[FoodEntry, ...] = ()
    total_nutrition: NutritionTotals = field(default_factory=NutritionTotals)
    status: str = "planned"
    description: str | None = None
    planned_time: str | None = None
    notes: str | None = None
    tags: tuple[str, ...] = ()
    rating: int | None = None
    consumed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class DayMeals:
    """Meals for one day grouped by type, with the day's nutrition totals."""

    day: date
    meals_by_type: dict[str, list[Meal]]
    daily_totals: NutritionTotals
    total_meals: int
