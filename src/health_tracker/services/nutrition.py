"""Nutrition scaling and meal totals.

Pure functions only: no I/O, no clock.
"""

from collections.abc import Iterable, Mapping

from health_tracker.domain.errors import InvalidArgumentError
from health_tracker.domain.numbers import require_non_negative, round2
from health_tracker.domain.nutrition import (
    FOOD_UNITS,
    NUTRIENT_FIELDS,
    FoodEntry,
    FoodRecord,
    NutritionTotals,
)

_SERVING_KEYS = frozenset({"serving_size", "serving_unit"})
_MIN_QUANTITY = 0.1


def scale_nutrition(food: FoodRecord, amount: object, unit: str) -> dict[str, object]:
    """Scale a food's per-serving nutrients to ``amount`` of ``unit``.

    ``g`` and ``ml`` are treated as 1:1 (water-like density). Any other unit
    mismatch is scaled as if the units matched, which is a known
    approximation: callers must validate unit families before calling.
    Numeric nutrients are rounded to 2 decimals; other values pass through.
    """
    quantity = require_non_negative(amount, "Amount")
    if food.serving_size <= 0:
        raise InvalidArgumentError(f"Food {food.id} has no usable serving size")
    factor = quantity / food.serving_size
    scaled: dict[str, object] = {}
    for key, value in food.nutrients.items():
        if key in _SERVING_KEYS:
            continue
        if _is_number(value):
            scaled[key] = round2(float(value) * factor)
        else:
            scaled[key] = value
    return scaled


def sum_food_entries(entries: Iterable[FoodEntry]) -> NutritionTotals:
    """Sum calories and macros over food entries; missing macros count as 0."""
    totals = dict.fromkeys(("calories", *NUTRIENT_FIELDS), 0.0)
    for entry in entries:
        totals["calories"] += entry.calories or 0.0
        for name in NUTRIENT_FIELDS:
            value = (entry.nutrition or {}).get(name)
            if value:
                totals[name] += value
    return NutritionTotals(**{name: round2(value) for name, value in totals.items()})


def build_food_entry(
    raw: Mapping[str, object], food: FoodRecord | None = None
) -> FoodEntry:
    """Validate a raw food payload into a FoodEntry.

    When ``food`` is given and the payload has no inline calories, calories
    and macros are derived from the catalog record by scaling.
    """
    quantity = require_non_negative(raw.get("quantity"), "Quantity")
    if quantity < _MIN_QUANTITY:
        raise InvalidArgumentError(f"Quantity must be at least {_MIN_QUANTITY}")
    unit = str(raw.get("unit") or "")
    if unit not in FOOD_UNITS:
        raise InvalidArgumentError(f"Invalid food unit: {unit!r}")
    name = str(raw.get("name") or (food.name if food else "")).strip()
    if not name:
        raise InvalidArgumentError("Food name is required")
    food_id = raw.get("food_id") or (food.id if food else None)

    if food is not None and raw.get("calories") is None:
        scaled = scale_nutrition(food, quantity, unit)
        raw_calories = scaled.get("calories")
        calories = float(raw_calories) if _is_number(raw_calories) else 0.0
        nutrition = {
            key: float(scaled[key])
            for key in NUTRIENT_FIELDS
            if _is_number(scaled.get(key))
        }
    else:
        calories = require_non_negative(raw.get("calories", 0.0), "Calories")
        nutrition = _validate_nutrition(raw.get("nutrition"))

    return FoodEntry(
        name=name,
        quantity=quantity,
        unit=unit,
        calories=round2(calories),
        nutrition=nutrition,
        food_id=str(food_id) if food_id else None,
    )


def _validate_nutrition(raw: object) -> dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise InvalidArgumentError("Food nutrition must be a mapping")
    nutrition: dict[str, float] = {}
    for name in NUTRIENT_FIELDS:
        if raw.get(name) is not None:
            nutrition[name] = round2(require_non_negative(raw[name], name))
    return nutrition


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
