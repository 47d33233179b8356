"""Tests for the meal tracker."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from uuid import UUID

import pytest

from health_tracker.domain.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from health_tracker.domain.meals import Meal
from health_tracker.domain.nutrition import NutritionTotals
from health_tracker.services.meals import MealService
from tests.conftest import DAY, USER_ID, InMemoryMealRepository

BREAKFAST_FOODS = [
    {
        "name": "Eggs",
        "quantity": 2,
        "unit": "piece",
        "calories": 140,
        "nutrition": {"protein": 12},
    },
    {"food_id": "oats", "quantity": 60, "unit": "g"},
]


@pytest.fixture
def meal_logs(caplog):
    logger = logging.getLogger("health_tracker.services.meals")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="health_tracker.services.meals")
    yield caplog
    logger.removeHandler(caplog.handler)


@dataclass
class StaleReadMealRepository(InMemoryMealRepository):
    """Serves pinned snapshots on reads while writes go to the live rows."""

    snapshots: dict[UUID, Meal] = field(default_factory=dict)

    def get_meal(self, meal_id: UUID) -> Meal | None:
        return self.snapshots.get(meal_id) or self.meals.get(meal_id)


@pytest.fixture
def breakfast(meal_service):
    return meal_service.create_meal(
        USER_ID,
        "Breakfast",
        "breakfast",
        "2024-03-15",
        BREAKFAST_FOODS,
        planned_time="08:30",
    )


def test_create_meal_derives_totals(breakfast, clock) -> None:
    assert breakfast.day == DAY
    assert breakfast.status == "planned"
    assert breakfast.created_at == clock.now
    assert breakfast.foods[1].name == "Rolled oats"
    assert breakfast.foods[1].calories == 225
    assert breakfast.total_nutrition == NutritionTotals(
        calories=365, protein=19.5, carbs=40.5, fat=4.5, fiber=6
    )


@pytest.mark.parametrize(
    "details",
    [
        {"planned_time": "25:00"},
        {"rating": 6},
        {"notes": "x" * 1001},
        {"tags": ["x" * 31]},
        {"color": "red"},
    ],
)
def test_create_meal_rejects_invalid_details(meal_service, details) -> None:
    with pytest.raises(InvalidArgumentError):
        meal_service.create_meal(USER_ID, "Lunch", "lunch", DAY, [], **details)


def test_create_meal_rejects_unknown_type(meal_service) -> None:
    with pytest.raises(InvalidArgumentError):
        meal_service.create_meal(USER_ID, "Lunch", "brunch", DAY)


def test_unknown_catalog_food_raises(meal_service) -> None:
    with pytest.raises(NotFoundError):
        meal_service.create_meal(
            USER_ID,
            "Lunch",
            "lunch",
            DAY,
            [{"food_id": "nope", "quantity": 1, "unit": "g"}],
        )


def test_catalog_food_requires_food_service(
    meal_repository, progress_service, goal_repository
) -> None:
    service = MealService(meal_repository, progress_service, goal_repository)

    with pytest.raises(InvalidArgumentError):
        service.create_meal(
            USER_ID,
            "Lunch",
            "lunch",
            DAY,
            [{"food_id": "oats", "quantity": 1, "unit": "g"}],
        )


def test_set_foods_is_idempotent(meal_service, breakfast) -> None:
    first = meal_service.set_foods(breakfast, BREAKFAST_FOODS)
    second = meal_service.set_foods(first, BREAKFAST_FOODS)

    assert first.total_nutrition == second.total_nutrition
    assert second.total_nutrition == breakfast.total_nutrition


def test_add_and_remove_food_rewrite_totals(meal_service, breakfast) -> None:
    added = meal_service.add_food(
        breakfast, {"name": "Juice", "quantity": 1, "unit": "cup", "calories": 110}
    )
    assert len(added.foods) == 3
    assert added.total_nutrition.calories == 475

    removed = meal_service.remove_food(added, 0)
    assert [food.name for food in removed.foods] == ["Rolled oats", "Juice"]
    assert removed.total_nutrition.calories == 335
    assert removed.total_nutrition.protein == 7.5

    with pytest.raises(InvalidArgumentError):
        meal_service.remove_food(removed, 2)
    with pytest.raises(InvalidArgumentError):
        meal_service.remove_food(removed, -1)


def test_update_details_normalizes_fields(meal_service, breakfast) -> None:
    updated = meal_service.update_details(
        breakfast, name="  Brunch ", tags=[" eggs ", "", "weekend"], rating=5
    )

    assert updated.name == "Brunch"
    assert updated.tags == ("eggs", "weekend")
    assert updated.rating == 5
    assert updated.foods == breakfast.foods

    with pytest.raises(InvalidArgumentError):
        meal_service.update_details(breakfast, status="consumed")


def test_planned_meal_cannot_jump_to_consumed(meal_service, breakfast) -> None:
    with pytest.raises(InvalidTransitionError):
        meal_service.update_status(breakfast, "consumed")


def test_unknown_status_is_invalid(meal_service, breakfast) -> None:
    with pytest.raises(InvalidArgumentError):
        meal_service.update_status(breakfast, "eaten")


def test_consuming_meal_logs_one_food_activity(
    meal_service, progress_service, goal, breakfast, clock
) -> None:
    prepared = meal_service.update_status(breakfast, "prepared")
    consumed = meal_service.update_status(prepared, "consumed")

    assert consumed.status == "consumed"
    assert consumed.consumed_at == clock.now
    progress = progress_service.get_for_date(USER_ID, DAY)
    assert len(progress.activities) == 1
    activity = progress.activities[0]
    assert activity.activity_type == "food"
    assert activity.value == 365
    assert activity.metadata["meal_id"] == str(breakfast.id)
    assert progress.current.calories == 365
    assert progress.current.meals == 1
    assert progress.nutritional["protein"] == 19.5


def test_consuming_again_is_a_no_op(
    meal_service, progress_service, goal, breakfast, clock
) -> None:
    meal_service.update_status(breakfast, "prepared")
    consumed = meal_service.update_status(breakfast, "consumed")
    clock.advance(300)

    again = meal_service.update_status(consumed, "consumed")

    assert again.consumed_at == consumed.consumed_at
    progress = progress_service.get_for_date(USER_ID, DAY)
    assert len(progress.activities) == 1


def test_concurrent_consumption_logs_one_activity(
    progress_service, goal_repository, goal, clock
) -> None:
    repository = StaleReadMealRepository()
    service = MealService(
        repository=repository,
        progress_service=progress_service,
        goal_repository=goal_repository,
        clock=clock,
    )
    meal = service.create_meal(
        USER_ID,
        "Soup",
        "lunch",
        DAY,
        [{"name": "Soup", "quantity": 1, "unit": "cup", "calories": 365}],
    )
    prepared = service.update_status(meal, "prepared")
    repository.snapshots[prepared.id] = prepared

    service.update_status(prepared, "consumed")
    with pytest.raises(ConflictError):
        service.update_status(prepared, "consumed")

    assert repository.meals[prepared.id].status == "consumed"
    progress = progress_service.get_for_date(USER_ID, DAY)
    assert len(progress.activities) == 1
    assert progress.current.meals == 1
    assert progress.current.calories == 365


def test_stale_details_edit_cannot_revert_status(meal_service, breakfast) -> None:
    meal_service.update_status(breakfast, "prepared")

    with pytest.raises(ConflictError):
        meal_service.update_details(breakfast, notes="extra salt")

    assert meal_service.get_meal(breakfast.id).status == "prepared"


def test_terminal_statuses_cannot_change(meal_service, breakfast) -> None:
    skipped = meal_service.update_status(breakfast, "skipped")

    with pytest.raises(InvalidTransitionError):
        meal_service.update_status(skipped, "prepared")


def test_consumption_without_goal_skips_progress(
    meal_service, progress_repository, breakfast, meal_logs
) -> None:
    meal_service.update_status(breakfast, "prepared")
    consumed = meal_service.update_status(breakfast, "consumed")

    assert consumed.status == "consumed"
    assert progress_repository.records == {}
    assert "No active goal" in meal_logs.text


def test_consumption_failure_does_not_block_status(
    meal_service, progress_service, meal_repository, goal, breakfast, meal_logs,
    monkeypatch,
) -> None:
    def fail(*_args, **_kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(progress_service, "add_activity", fail)
    meal_service.update_status(breakfast, "prepared")

    consumed = meal_service.update_status(breakfast, "consumed")

    assert consumed.status == "consumed"
    assert meal_repository.get_meal(breakfast.id).status == "consumed"
    assert "Failed to log meal consumption" in meal_logs.text


def test_duplicate_for_date_copies_foods_as_planned(
    meal_service, goal, breakfast
) -> None:
    meal_service.update_status(breakfast, "prepared")
    consumed = meal_service.update_status(breakfast, "consumed")

    copy = meal_service.duplicate_for_date(consumed, DAY + timedelta(days=1), "lunch")

    assert copy.id != consumed.id
    assert copy.day == DAY + timedelta(days=1)
    assert copy.meal_type == "lunch"
    assert copy.status == "planned"
    assert copy.consumed_at is None
    assert copy.foods == consumed.foods
    assert copy.total_nutrition == consumed.total_nutrition

    with pytest.raises(InvalidArgumentError):
        meal_service.duplicate_for_date(consumed, DAY, "brunch")


def test_meals_for_date_groups_by_type(meal_service, breakfast) -> None:
    meal_service.create_meal(
        USER_ID,
        "Pasta",
        "dinner",
        DAY,
        [{"name": "Pasta", "quantity": 200, "unit": "g", "calories": 300}],
    )
    meal_service.create_meal(USER_ID, "Elsewhere", "lunch", DAY + timedelta(days=1))

    day = meal_service.meals_for_date(USER_ID, DAY)

    assert day.total_meals == 2
    assert [meal.name for meal in day.meals_by_type["breakfast"]] == ["Breakfast"]
    assert [meal.name for meal in day.meals_by_type["dinner"]] == ["Pasta"]
    assert day.meals_by_type["lunch"] == []
    assert day.daily_totals.calories == 665
    assert day.daily_totals.protein == 19.5


def test_meals_for_week_uses_monday_to_sunday(meal_service, breakfast) -> None:
    meal_service.create_meal(USER_ID, "Sunday roast", "dinner", "2024-03-17")
    meal_service.create_meal(USER_ID, "Next Monday", "lunch", "2024-03-18")
    meal_service.create_meal(USER_ID, "Last Sunday", "lunch", "2024-03-10")

    meals = meal_service.meals_for_week(USER_ID, "2024-03-13")

    assert [meal.name for meal in meals] == ["Breakfast", "Sunday roast"]


def test_search_meals_filters(meal_service, breakfast) -> None:
    meal_service.create_meal(USER_ID, "Egg salad", "lunch", DAY)
    meal_service.create_meal("user-2", "Egg wrap", "lunch", DAY)

    assert [meal.name for meal in meal_service.search_meals(USER_ID, "egg")] == [
        "Egg salad"
    ]
    assert len(meal_service.search_meals(USER_ID, meal_type="breakfast")) == 1
    assert meal_service.search_meals(USER_ID, status="consumed") == []
    with pytest.raises(InvalidArgumentError):
        meal_service.search_meals(USER_ID, status="eaten")


def test_delete_meal(meal_service, breakfast) -> None:
    meal_service.delete_meal(breakfast.id)

    with pytest.raises(NotFoundError):
        meal_service.get_meal(breakfast.id)
    with pytest.raises(NotFoundError):
        meal_service.delete_meal(breakfast.id)
