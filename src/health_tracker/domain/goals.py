"""Domain models and validation for daily goals."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from uuid import UUID, uuid4

from health_tracker.domain.errors import InvalidArgumentError
from health_tracker.domain.numbers import require_in_range, require_non_negative

TARGET_FIELDS = ("calories", "water", "meals", "exercise", "sleep", "steps")

TARGET_BOUNDS: dict[str, tuple[float, float]] = {
    "calories": (800, 5000),
    "water": (1, 20),
    "meals": (1, 10),
    "exercise": (5, 300),
    "sleep": (4, 12),
    "steps": (1000, 50000),
}

NUTRITIONAL_TARGET_BOUNDS: dict[str, tuple[float, float]] = {
    "protein": (0, 500),
    "carbs": (0, 1000),
    "fat": (0, 300),
    "fiber": (0, 100),
    "sugar": (0, 200),
    "sodium": (0, 5000),
}

CUSTOM_GOAL_CATEGORIES = frozenset({"nutrition", "fitness", "wellness", "other"})
_CUSTOM_NAME_MAX = 100
_CUSTOM_UNIT_MAX = 20


@dataclass(frozen=True)
class DailyTargets:
    """The six canonical per-day targets."""

    calories: float
    water: float
    meals: float
    exercise: float
    sleep: float
    steps: float


@dataclass(frozen=True)
class NutritionalTargets:
    """Optional macro sub-targets; None means unset."""

    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None


@dataclass(frozen=True)
class CustomGoal:
    """A user-defined goal tracked alongside the canonical targets."""

    id: str
    name: str
    target: float
    unit: str
    category: str = "other"
    is_completed: bool = False


@dataclass(frozen=True)
class Goal:
    """Daily goal definition for one user and one calendar day."""

    id: UUID
    user_id: str
    day: date
    targets: DailyTargets
    nutritional_targets: NutritionalTargets = field(
        default_factory=NutritionalTargets
    )
    custom_goals: tuple[CustomGoal, ...] = ()
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def custom_goal(self, custom_goal_id: str) -> CustomGoal | None:
        """Return the custom goal with the given id, if present."""
        for custom in self.custom_goals:
            if custom.id == custom_goal_id:
                return custom
        return None


def validate_targets(
    values: Mapping[str, object], *, partial: bool = False
) -> dict[str, float]:
    """Validate canonical targets against their bounds.

    With ``partial`` only the provided keys are checked; otherwise all six
    are required.
    """
    unknown = set(values) - set(TARGET_FIELDS)
    if unknown:
        raise InvalidArgumentError(f"Unknown target fields: {sorted(unknown)}")
    validated: dict[str, float] = {}
    for name in TARGET_FIELDS:
        if name not in values or values[name] is None:
            if partial:
                continue
            raise InvalidArgumentError(f"{name} target is required")
        low, high = TARGET_BOUNDS[name]
        validated[name] = require_in_range(values[name], f"{name} target", low, high)
    return validated


def validate_nutritional_targets(
    values: Mapping[str, object] | None,
) -> dict[str, float]:
    """Validate the provided nutritional targets; absent keys stay unset."""
    if not values:
        return {}
    unknown = set(values) - set(NUTRITIONAL_TARGET_BOUNDS)
    if unknown:
        raise InvalidArgumentError(
            f"Unknown nutritional target fields: {sorted(unknown)}"
        )
    validated: dict[str, float] = {}
    for name, raw in values.items():
        if raw is None:
            continue
        low, high = NUTRITIONAL_TARGET_BOUNDS[name]
        validated[name] = require_in_range(raw, f"{name} target", low, high)
    return validated


def build_custom_goals(
    items: list[Mapping[str, object]] | None,
) -> tuple[CustomGoal, ...]:
    """Validate raw custom goal payloads and assign ids where missing."""
    goals: list[CustomGoal] = []
    for item in items or []:
        name = str(item.get("name") or "").strip()
        if not name or len(name) > _CUSTOM_NAME_MAX:
            raise InvalidArgumentError(
                f"Custom goal name must be 1-{_CUSTOM_NAME_MAX} characters"
            )
        unit = str(item.get("unit") or "").strip()
        if not unit or len(unit) > _CUSTOM_UNIT_MAX:
            raise InvalidArgumentError(
                f"Custom goal unit must be 1-{_CUSTOM_UNIT_MAX} characters"
            )
        category = str(item.get("category") or "other")
        if category not in CUSTOM_GOAL_CATEGORIES:
            raise InvalidArgumentError(f"Invalid custom goal category: {category}")
        goals.append(
            CustomGoal(
                id=str(item.get("id") or uuid4()),
                name=name,
                target=require_non_negative(item.get("target"), "Custom goal target"),
                unit=unit,
                category=category,
                is_completed=bool(item.get("is_completed", False)),
            )
        )
    return tuple(goals)


def targets_as_dict(targets: DailyTargets) -> dict[str, float]:
    return {name: getattr(targets, name) for name in TARGET_FIELDS}


def nutritional_targets_as_dict(targets: NutritionalTargets) -> dict[str, float]:
    """Return only the nutritional targets that are set."""
    return {
        item.name: getattr(targets, item.name)
        for item in fields(targets)
        if getattr(targets, item.name) is not None
    }
