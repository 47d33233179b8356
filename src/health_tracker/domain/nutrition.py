"""Nutrition domain models."""

from collections.abc import Mapping
from dataclasses import dataclass, field

NUTRIENT_FIELDS = ("protein", "carbs", "fat", "fiber", "sugar", "sodium")
FOOD_UNITS = frozenset({"g", "ml", "cup", "piece", "slice", "tbsp", "tsp", "oz"})


@dataclass(frozen=True)
class FoodRecord:
    """Canonical nutrition-per-serving record from the food catalog."""

    id: str
    name: str
    serving_size: float
    serving_unit: str
    nutrients: Mapping[str, object]
    brand: str | None = None


@dataclass(frozen=True)
class FoodEntry:
    """A food as it appears inside a meal, already scaled to its quantity."""

    name: str
    quantity: float
    unit: str
    calories: float = 0.0
    nutrition: dict[str, float] = field(default_factory=dict)
    food_id: str | None = None


@dataclass(frozen=True)
class NutritionTotals:
    """Calories plus the six tracked macros."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0

    def macros(self) -> dict[str, float]:
        """Return the six macros keyed by nutrient name."""
        return {name: getattr(self, name) for name in NUTRIENT_FIELDS}
