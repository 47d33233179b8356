"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import pytest

from health_tracker.config import Settings
from health_tracker.containers import AppContainer
from health_tracker.domain.errors import ConflictError
from health_tracker.domain.goals import Goal
from health_tracker.domain.meals import Meal
from health_tracker.domain.nutrition import FoodRecord
from health_tracker.domain.progress import Progress
from health_tracker.services.cache import InMemoryCache
from health_tracker.services.foods import FoodRepository, FoodService
from health_tracker.services.goals import GoalRepository, GoalService
from health_tracker.services.meals import MealRepository, MealService
from health_tracker.services.progress import ProgressRepository, ProgressService
from health_tracker.services.stats import StatsService

USER_ID = "user-1"
DAY = date(2024, 3, 15)
DAILY_TARGETS = {
    "calories": 2000,
    "water": 8,
    "meals": 3,
    "exercise": 30,
    "sleep": 8,
    "steps": 10000,
}


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository for tests."""

    goals: dict[UUID, Goal] = field(default_factory=dict)

    def create_goal(self, goal: Goal) -> Goal:
        if self.get_active_goal(goal.user_id, goal.day) is not None:
            raise ConflictError("Goals already exist for this date")
        self.goals[goal.id] = goal
        return goal

    def get_goal(self, goal_id: UUID) -> Goal | None:
        return self.goals.get(goal_id)

    def get_active_goal(self, user_id: str, day: date) -> Goal | None:
        for goal in self.goals.values():
            if goal.user_id == user_id and goal.day == day and goal.is_active:
                return goal
        return None

    def list_active_goals(self, user_id: str, start: date, end: date) -> list[Goal]:
        goals = [
            goal
            for goal in self.goals.values()
            if goal.user_id == user_id and goal.is_active and start <= goal.day <= end
        ]
        return sorted(goals, key=lambda goal: goal.day, reverse=True)

    def update_goal(self, goal: Goal) -> Goal:
        self.goals[goal.id] = goal
        return goal


@dataclass
class InMemoryProgressRepository(ProgressRepository):
    """In-memory progress repository with version checks."""

    records: dict[UUID, Progress] = field(default_factory=dict)
    saves: int = 0

    def get_or_create_progress(self, progress: Progress) -> Progress:
        existing = self.find_progress(progress.user_id, progress.goal_id, progress.day)
        if existing is not None:
            return existing
        self.records[progress.id] = progress
        return progress

    def get_progress(self, progress_id: UUID) -> Progress | None:
        return self.records.get(progress_id)

    def find_progress(self, user_id: str, goal_id: UUID, day: date) -> Progress | None:
        for progress in self.records.values():
            if (progress.user_id, progress.goal_id, progress.day) == (
                user_id,
                goal_id,
                day,
            ):
                return progress
        return None

    def list_progress(self, user_id: str, start: date, end: date) -> list[Progress]:
        rows = [
            progress
            for progress in self.records.values()
            if progress.user_id == user_id and start <= progress.day <= end
        ]
        return sorted(rows, key=lambda progress: progress.day)

    def save_progress(self, progress: Progress, expected_version: int) -> Progress:
        stored = self.records.get(progress.id)
        if stored is None or stored.version != expected_version:
            raise ConflictError("Progress was modified concurrently")
        saved = replace(progress, version=expected_version + 1)
        self.records[progress.id] = saved
        self.saves += 1
        return saved

    def delete_progress(self, progress_id: UUID) -> None:
        self.records.pop(progress_id, None)


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[UUID, Meal] = field(default_factory=dict)

    def create_meal(self, meal: Meal) -> Meal:
        self.meals[meal.id] = meal
        return meal

    def get_meal(self, meal_id: UUID) -> Meal | None:
        return self.meals.get(meal_id)

    def update_meal(self, meal: Meal, expected_status: str) -> Meal:
        stored = self.meals.get(meal.id)
        if stored is None or stored.status != expected_status:
            raise ConflictError("Meal was modified concurrently")
        self.meals[meal.id] = meal
        return meal

    def delete_meal(self, meal_id: UUID) -> None:
        self.meals.pop(meal_id, None)

    def list_meals(self, user_id: str, start: date, end: date) -> list[Meal]:
        meals = [
            meal
            for meal in self.meals.values()
            if meal.user_id == user_id and start <= meal.day <= end
        ]
        return sorted(
            meals,
            key=lambda meal: (meal.day, meal.planned_time or "", meal.created_at),
        )

    def search_meals(
        self,
        user_id: str,
        query: str | None,
        meal_type: str | None,
        status: str | None,
        limit: int,
    ) -> list[Meal]:
        matches = [
            meal
            for meal in self.meals.values()
            if meal.user_id == user_id
            and (query is None or query.lower() in meal.name.lower())
            and (meal_type is None or meal.meal_type == meal_type)
            and (status is None or meal.status == status)
        ]
        matches.sort(key=lambda meal: meal.day, reverse=True)
        return matches[:limit]


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory food catalog that counts lookups."""

    foods: dict[str, FoodRecord] = field(default_factory=dict)
    lookups: int = 0

    def get_food(self, food_id: str) -> FoodRecord | None:
        self.lookups += 1
        return self.foods.get(food_id)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def progress_repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository(
        foods={
            "oats": FoodRecord(
                id="oats",
                name="Rolled oats",
                serving_size=40,
                serving_unit="g",
                nutrients={
                    "calories": 150,
                    "protein": 5,
                    "carbs": 27,
                    "fat": 3,
                    "fiber": 4,
                    "serving_size": 40,
                },
            )
        }
    )


@pytest.fixture
def goal_service(
    goal_repository: InMemoryGoalRepository, clock: FixedClock
) -> GoalService:
    return GoalService(goal_repository, clock=clock)


@pytest.fixture
def progress_service(
    progress_repository: InMemoryProgressRepository,
    goal_repository: InMemoryGoalRepository,
    clock: FixedClock,
) -> ProgressService:
    return ProgressService(progress_repository, goal_repository, clock=clock)


@pytest.fixture
def food_service(
    food_repository: InMemoryFoodRepository, clock: FixedClock
) -> FoodService:
    return FoodService(food_repository, InMemoryCache(clock=clock), ttl_seconds=60)


@pytest.fixture
def meal_service(
    meal_repository: InMemoryMealRepository,
    progress_service: ProgressService,
    goal_repository: InMemoryGoalRepository,
    food_service: FoodService,
    clock: FixedClock,
) -> MealService:
    return MealService(
        repository=meal_repository,
        progress_service=progress_service,
        goal_repository=goal_repository,
        food_service=food_service,
        clock=clock,
    )


@pytest.fixture
def stats_service(
    progress_repository: InMemoryProgressRepository,
    goal_repository: InMemoryGoalRepository,
) -> StatsService:
    return StatsService(progress_repository, goal_repository)


@pytest.fixture
def goal(goal_service: GoalService) -> Goal:
    return goal_service.create(USER_ID, DAY, DAILY_TARGETS)


@pytest.fixture
def progress(progress_service: ProgressService, goal: Goal) -> Progress:
    return progress_service.get_or_create(USER_ID, goal.id, DAY)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    goal_service: GoalService,
    progress_service: ProgressService,
    meal_service: MealService,
    food_service: FoodService,
    stats_service: StatsService,
) -> AppContainer:
    return AppContainer(
        settings=settings,
        goal_service=goal_service,
        progress_service=progress_service,
        meal_service=meal_service,
        food_service=food_service,
        stats_service=stats_service,
    )
