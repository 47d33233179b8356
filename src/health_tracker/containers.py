"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from health_tracker.adapters.supabase_food_repository import SupabaseFoodRepository
from health_tracker.adapters.supabase_goal_repository import SupabaseGoalRepository
from health_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from health_tracker.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from health_tracker.config import Settings
from health_tracker.services.cache import InMemoryCache
from health_tracker.services.foods import FoodService
from health_tracker.services.goals import GoalService
from health_tracker.services.meals import MealService
from health_tracker.services.progress import ProgressService
from health_tracker.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    goal_service: GoalService
    progress_service: ProgressService
    meal_service: MealService
    food_service: FoodService
    stats_service: StatsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    goal_repository = SupabaseGoalRepository(supabase_client)
    progress_repository = SupabaseProgressRepository(supabase_client)
    meal_repository = SupabaseMealRepository(supabase_client)
    food_repository = SupabaseFoodRepository(supabase_client)
    goal_service = GoalService(goal_repository)
    progress_service = ProgressService(progress_repository, goal_repository)
    food_service = FoodService(
        repository=food_repository,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.food_cache_ttl_seconds,
    )
    meal_service = MealService(
        repository=meal_repository,
        progress_service=progress_service,
        goal_repository=goal_repository,
        food_service=food_service,
    )
    stats_service = StatsService(progress_repository, goal_repository)
    return AppContainer(
        settings=resolved_settings,
        goal_service=goal_service,
        progress_service=progress_service,
        meal_service=meal_service,
        food_service=food_service,
        stats_service=stats_service,
    )
