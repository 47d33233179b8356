"""Food catalog lookups used by the meal tracker."""

import logging
from dataclasses import dataclass
from typing import Protocol

from health_tracker.domain.errors import NotFoundError
from health_tracker.domain.nutrition import FoodRecord
from health_tracker.services.cache import Cache

_logger = logging.getLogger(__name__)


class FoodRepository(Protocol):
    """Read interface over the food catalog."""

    def get_food(self, food_id: str) -> FoodRecord | None:
        """Return a food by id, if present."""


@dataclass
class FoodService:
    """Cached food lookup by id."""

    repository: FoodRepository
    cache: Cache
    ttl_seconds: int = 86400

    def get_food(self, food_id: str) -> FoodRecord:
        """Return the catalog record for a food, raising NotFoundError."""
        cache_key = f"food:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodRecord):
            return cached
        food = self.repository.get_food(food_id)
        if food is None:
            raise NotFoundError(f"Food {food_id} not found")
        self.cache.set(cache_key, food, ttl_seconds=self.ttl_seconds)
        _logger.debug("Food cache miss: food_id=%s", food_id)
        return food
