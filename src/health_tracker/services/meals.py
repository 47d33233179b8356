"""Meal tracking service."""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, fields, replace
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4

from health_tracker.domain.dates import Clock, start_of_day, utc_now, week_bounds
from health_tracker.domain.errors import (
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from health_tracker.domain.meals import (
    ALLOWED_TRANSITIONS,
    MEAL_STATUSES,
    MEAL_TYPES,
    DayMeals,
    Meal,
)
from health_tracker.domain.numbers import round2
from health_tracker.domain.nutrition import FoodEntry, NutritionTotals
from health_tracker.domain.progress import ActivityInput, Progress
from health_tracker.services.foods import FoodService
from health_tracker.services.goals import GoalRepository
from health_tracker.services.nutrition import build_food_entry, sum_food_entries
from health_tracker.services.progress import ProgressService

_logger = logging.getLogger(__name__)

_PLANNED_TIME = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
_NAME_MAX = 100
_DESCRIPTION_MAX = 500
_NOTES_MAX = 1000
_TAG_MAX = 30
_RATING_RANGE = (1, 5)
_DETAIL_FIELDS = frozenset(
    {"name", "description", "meal_type", "planned_time", "notes", "tags", "rating"}
)

FoodInput = FoodEntry | Mapping[str, object]


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def create_meal(self, meal: Meal) -> Meal:
        """Insert a meal and return it."""

    def get_meal(self, meal_id: UUID) -> Meal | None:
        """Return a meal by id, if present."""

    def update_meal(self, meal: Meal, expected_status: str) -> Meal:
        """Persist a modified meal if its stored status is still ``expected_status``.

        Raises ConflictError when the stored status has moved on.
        """

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal."""

    def list_meals(self, user_id: str, start: date, end: date) -> list[Meal]:
        """Return meals with start <= day <= end ordered by day and planned time."""

    def search_meals(
        self,
        user_id: str,
        query: str | None,
        meal_type: str | None,
        status: str | None,
        limit: int,
    ) -> list[Meal]:
        """Return meals matching a name substring and optional filters."""


@dataclass
class MealService:
    """Owns meal records and logs consumed meals into daily progress."""

    repository: MealRepository
    progress_service: ProgressService
    goal_repository: GoalRepository
    food_service: FoodService | None = None
    clock: Clock = utc_now

    def create_meal(  # noqa: PLR0913
        self,
        user_id: str,
        name: str,
        meal_type: str,
        day: date | datetime | str,
        foods: Iterable[FoodInput] = (),
        **details: object,
    ) -> Meal:
        """Create a planned meal with validated foods and derived totals."""
        _check_details({"name": name, "meal_type": meal_type, **details})
        entries = self._resolve_foods(foods)
        now = self.clock()
        meal = Meal(
            id=uuid4(),
            user_id=user_id,
            name=name.strip(),
            meal_type=meal_type,
            day=start_of_day(day),
            created_at=now,
            **_normalize_details(details),
        )
        created = self.repository.create_meal(self._with_foods(meal, entries))
        _logger.info("Meal created: meal_id=%s day=%s", created.id, created.day)
        return created

    def get_meal(self, meal_id: UUID) -> Meal:
        """Return a meal or raise NotFoundError."""
        meal = self.repository.get_meal(meal_id)
        if meal is None:
            raise NotFoundError(f"Meal {meal_id} not found")
        return meal

    def set_foods(self, meal: Meal, foods: Iterable[FoodInput]) -> Meal:
        """Replace the food list and rewrite the totals."""
        entries = self._resolve_foods(foods)
        return self._save(self._with_foods(meal, entries))

    def add_food(self, meal: Meal, food: FoodInput) -> Meal:
        """Append one food and rewrite the totals."""
        entries = [*meal.foods, *self._resolve_foods([food])]
        return self._save(self._with_foods(meal, entries))

    def remove_food(self, meal: Meal, index: int) -> Meal:
        """Remove the food at ``index`` and rewrite the totals."""
        if isinstance(index, bool) or not 0 <= index < len(meal.foods):
            raise InvalidArgumentError(f"Invalid food index: {index}")
        entries = [food for i, food in enumerate(meal.foods) if i != index]
        return self._save(self._with_foods(meal, entries))

    def update_details(self, meal: Meal, **changes: object) -> Meal:
        """Update descriptive fields; foods and status have their own paths."""
        _check_details(changes)
        normalized = _normalize_details(changes)
        if "name" in changes:
            normalized["name"] = str(changes["name"]).strip()
        if "meal_type" in changes:
            normalized["meal_type"] = changes["meal_type"]
        return self._save(replace(meal, updated_at=self.clock(), **normalized))

    def update_status(self, meal: Meal, new_status: str) -> Meal:
        """Move a meal through its lifecycle.

        Entering ``consumed`` stamps ``consumed_at`` once and logs a food
        activity into that day's progress. Re-applying the current status is
        a no-op. If the stored status changes between the read and the write,
        ConflictError is raised and no activity is logged.
        """
        if new_status not in MEAL_STATUSES:
            raise InvalidArgumentError(f"Invalid status: {new_status}")
        current = self.get_meal(meal.id)
        if new_status == current.status:
            return current
        if new_status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"Cannot change meal status from {current.status} to {new_status}"
            )
        now = self.clock()
        consumed_at = current.consumed_at
        if new_status == "consumed" and consumed_at is None:
            consumed_at = now
        saved = self.repository.update_meal(
            replace(
                current, status=new_status, consumed_at=consumed_at, updated_at=now
            ),
            expected_status=current.status,
        )
        _logger.info("Meal status updated: meal_id=%s status=%s", saved.id, new_status)
        if new_status == "consumed":
            self.emit_consumption_activity(saved)
        return saved

    def emit_consumption_activity(self, meal: Meal) -> Progress | None:
        """Log a consumed meal into its day's progress, best-effort.

        Failures are logged and swallowed so the status change never depends
        on the progress write.
        """
        try:
            goal = self.goal_repository.get_active_goal(meal.user_id, meal.day)
            if goal is None:
                _logger.info(
                    "No active goal for meal day, skipping progress: meal_id=%s",
                    meal.id,
                )
                return None
            progress = self.progress_service.get_or_create(
                meal.user_id, goal.id, meal.day
            )
            return self.progress_service.add_activity(
                progress,
                ActivityInput(
                    activity_type="food",
                    description=meal.name,
                    value=meal.total_nutrition.calories,
                    unit="calories",
                    metadata={
                        "meal_id": str(meal.id),
                        "nutrition": asdict(meal.total_nutrition),
                    },
                ),
            )
        except Exception:
            _logger.exception("Failed to log meal consumption: meal_id=%s", meal.id)
            return None

    def duplicate_for_date(
        self,
        meal: Meal,
        new_day: date | datetime | str,
        new_type: str | None = None,
    ) -> Meal:
        """Copy a meal to another day as a new planned meal."""
        if new_type is not None and new_type not in MEAL_TYPES:
            raise InvalidArgumentError(f"Invalid meal type: {new_type}")
        now = self.clock()
        duplicate = Meal(
            id=uuid4(),
            user_id=meal.user_id,
            name=meal.name,
            meal_type=new_type or meal.meal_type,
            day=start_of_day(new_day),
            description=meal.description,
            planned_time=meal.planned_time,
            notes=meal.notes,
            tags=meal.tags,
            created_at=now,
        )
        copied = [replace(food, nutrition=dict(food.nutrition)) for food in meal.foods]
        return self.repository.create_meal(self._with_foods(duplicate, copied))

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal permanently."""
        self.get_meal(meal_id)
        self.repository.delete_meal(meal_id)
        _logger.info("Meal deleted: meal_id=%s", meal_id)

    def meals_for_date(self, user_id: str, day: date | datetime | str) -> DayMeals:
        """Return a day's meals grouped by type, with daily nutrition totals."""
        meal_day = start_of_day(day)
        meals = self.repository.list_meals(user_id, meal_day, meal_day)
        grouped: dict[str, list[Meal]] = {meal_type: [] for meal_type in MEAL_TYPES}
        for meal in meals:
            grouped.setdefault(meal.meal_type, []).append(meal)
        return DayMeals(
            day=meal_day,
            meals_by_type=grouped,
            daily_totals=_sum_meal_totals(meals),
            total_meals=len(meals),
        )

    def meals_for_week(self, user_id: str, day: date | datetime | str) -> list[Meal]:
        """Return the Monday-to-Sunday meal plan containing ``day``."""
        start, end = week_bounds(day)
        return self.repository.list_meals(user_id, start, end)

    def search_meals(
        self,
        user_id: str,
        query: str | None = None,
        meal_type: str | None = None,
        status: str | None = None,
        limit: int = 20,
    ) -> list[Meal]:
        """Search a user's meals by name with optional type and status filters."""
        if meal_type is not None and meal_type not in MEAL_TYPES:
            raise InvalidArgumentError(f"Invalid meal type: {meal_type}")
        if status is not None and status not in MEAL_STATUSES:
            raise InvalidArgumentError(f"Invalid status: {status}")
        cleaned = query.strip() if query else None
        return self.repository.search_meals(
            user_id, cleaned or None, meal_type, status, max(1, limit)
        )

    def _resolve_foods(self, foods: Iterable[FoodInput]) -> list[FoodEntry]:
        entries: list[FoodEntry] = []
        for food in foods:
            if isinstance(food, FoodEntry):
                entries.append(food)
                continue
            record = None
            food_id = food.get("food_id")
            if food_id and food.get("calories") is None:
                if self.food_service is None:
                    raise InvalidArgumentError(
                        "Foods referenced by id need inline calories"
                    )
                record = self.food_service.get_food(str(food_id))
            entries.append(build_food_entry(food, record))
        return entries

    def _save(self, meal: Meal) -> Meal:
        return self.repository.update_meal(meal, expected_status=meal.status)

    def _with_foods(self, meal: Meal, entries: Iterable[FoodEntry]) -> Meal:
        foods = tuple(entries)
        return replace(
            meal,
            foods=foods,
            total_nutrition=sum_food_entries(foods),
            updated_at=self.clock(),
        )


def _check_details(details: Mapping[str, object]) -> None:  # noqa: PLR0912
    unknown = set(details) - _DETAIL_FIELDS
    if unknown:
        raise InvalidArgumentError(f"Unknown meal fields: {sorted(unknown)}")
    if "name" in details:
        name = str(details["name"] or "").strip()
        if not name or len(name) > _NAME_MAX:
            raise InvalidArgumentError(f"Meal name must be 1-{_NAME_MAX} characters")
    if "meal_type" in details and details["meal_type"] not in MEAL_TYPES:
        raise InvalidArgumentError(f"Invalid meal type: {details['meal_type']}")
    description = details.get("description")
    if description is not None and len(str(description)) > _DESCRIPTION_MAX:
        raise InvalidArgumentError(
            f"Description cannot exceed {_DESCRIPTION_MAX} characters"
        )
    planned_time = details.get("planned_time")
    if planned_time is not None and not _PLANNED_TIME.match(str(planned_time)):
        raise InvalidArgumentError("Invalid time format. Use HH:MM")
    notes = details.get("notes")
    if notes is not None and len(str(notes)) > _NOTES_MAX:
        raise InvalidArgumentError(f"Notes cannot exceed {_NOTES_MAX} characters")
    tags = details.get("tags")
    if tags is not None:
        if isinstance(tags, str) or not isinstance(tags, Iterable):
            raise InvalidArgumentError("Tags must be a list of strings")
        if any(len(str(tag).strip()) > _TAG_MAX for tag in tags):
            raise InvalidArgumentError(f"Tags cannot exceed {_TAG_MAX} characters")
    rating = details.get("rating")
    if rating is not None and (
        isinstance(rating, bool)
        or not isinstance(rating, int)
        or not _RATING_RANGE[0] <= rating <= _RATING_RANGE[1]
    ):
        raise InvalidArgumentError("Rating must be an integer between 1 and 5")


def _normalize_details(details: Mapping[str, object]) -> dict[str, object]:
    normalized: dict[str, object] = {}
    for key in ("description", "planned_time", "notes", "rating"):
        if key in details:
            normalized[key] = details[key]
    tags = details.get("tags")
    if isinstance(tags, Iterable):
        cleaned = (str(tag).strip() for tag in tags)
        normalized["tags"] = tuple(tag for tag in cleaned if tag)
    return normalized


def _sum_meal_totals(meals: Iterable[Meal]) -> NutritionTotals:
    totals = dict.fromkeys((item.name for item in fields(NutritionTotals)), 0.0)
    for meal in meals:
        for name in totals:
            totals[name] += getattr(meal.total_nutrition, name)
    return NutritionTotals(**{name: round2(value) for name, value in totals.items()})
