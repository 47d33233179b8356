"""Progress aggregate and the activity accumulation rules.

``current``, ``nutritional`` and ``summary.calories_burned`` are a cache over
the activity ledger. They change only through ``apply_activity`` and
``revert_activity``, which both read the same rule table in
``activity_effect``, or through ``apply_update`` for set-only fields.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from uuid import UUID

from health_tracker.domain.errors import InvalidArgumentError, NotFoundError
from health_tracker.domain.goals import TARGET_FIELDS, CustomGoal
from health_tracker.domain.numbers import require_non_negative, round2
from health_tracker.domain.nutrition import NUTRIENT_FIELDS

ACTIVITY_TYPES = frozenset({"food", "water", "exercise", "sleep", "manual"})
UPDATE_OPERATIONS = frozenset({"add", "set", "subtract"})

PROGRESS_CAPS: dict[str, float] = {
    "calories": 10000,
    "water": 50,
    "meals": 20,
    "exercise": 1000,
    "sleep": 24,
    "steps": 100000,
}


def _zero_nutritional() -> dict[str, float]:
    return dict.fromkeys(NUTRIENT_FIELDS, 0.0)


@dataclass(frozen=True)
class ProgressCounters:
    """Accumulators mirroring the six canonical targets."""

    calories: float = 0.0
    water: float = 0.0
    meals: float = 0.0
    exercise: float = 0.0
    sleep: float = 0.0
    steps: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in TARGET_FIELDS}


@dataclass(frozen=True)
class ProgressSummary:
    """Derived daily summary."""

    calories_consumed: float = 0.0
    calories_burned: float = 0.0
    net_calories: float = 0.0
    total_activities: int = 0
    completed_goals: int = 0


@dataclass(frozen=True)
class CustomProgress:
    """Progress towards one custom goal."""

    goal_id: str
    current: float = 0.0
    is_completed: bool = False


@dataclass(frozen=True)
class ActivityInput:
    """Caller-supplied activity before it is stamped into the ledger."""

    activity_type: str
    description: str
    value: float
    unit: str
    food_id: str | None = None
    exercise_type: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Activity:
    """A single ledger entry."""

    id: UUID
    activity_type: str
    description: str
    value: float
    unit: str
    timestamp: datetime
    food_id: str | None = None
    exercise_type: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Progress:
    """Per-day progress for one user and goal."""

    id: UUID
    user_id: str
    goal_id: UUID
    day: date
    current: ProgressCounters = field(default_factory=ProgressCounters)
    nutritional: dict[str, float] = field(default_factory=_zero_nutritional)
    activities: tuple[Activity, ...] = ()
    summary: ProgressSummary = field(default_factory=ProgressSummary)
    custom_progress: tuple[CustomProgress, ...] = ()
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_activity_at: datetime | None = None

    def find_activity(self, activity_id: UUID) -> Activity | None:
        """Return the ledger entry with the given id, if present."""
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None


@dataclass(frozen=True)
class ActivityEffect:
    """Accumulation effect of one activity on the derived fields."""

    counters: dict[str, float] = field(default_factory=dict)
    nutritional: dict[str, float] = field(default_factory=dict)
    calories_burned: float = 0.0


def validate_activity(activity: ActivityInput) -> ActivityInput:
    """Check an activity before any mutation and normalize its value."""
    if activity.activity_type not in ACTIVITY_TYPES:
        raise InvalidArgumentError(f"Invalid activity type: {activity.activity_type}")
    if not str(activity.description or "").strip():
        raise InvalidArgumentError("Activity description is required")
    if not str(activity.unit or "").strip():
        raise InvalidArgumentError("Activity unit is required")
    value = round2(require_non_negative(activity.value, "Activity value"))
    metadata = dict(activity.metadata or {})
    if metadata.get("calories_burned") is not None:
        require_non_negative(metadata["calories_burned"], "calories_burned")
    nutrition = metadata.get("nutrition")
    if nutrition is not None:
        if not isinstance(nutrition, Mapping):
            raise InvalidArgumentError("Activity nutrition metadata must be a mapping")
        for name in NUTRIENT_FIELDS:
            if nutrition.get(name) is not None:
                require_non_negative(nutrition[name], f"nutrition.{name}")
    return replace(activity, value=value, metadata=metadata)


def activity_effect(activity: Activity | ActivityInput) -> ActivityEffect:
    """Return what an activity contributes to the derived fields.

    food: calories += value, meals += 1, macros from metadata.nutrition.
    water: water += value.
    exercise: exercise += value, calories_burned += metadata.calories_burned.
    sleep, manual: ledger only.
    """
    metadata = activity.metadata or {}
    if activity.activity_type == "food":
        return ActivityEffect(
            counters={"calories": activity.value, "meals": 1.0},
            nutritional=_nutrition_from_metadata(metadata),
        )
    if activity.activity_type == "water":
        return ActivityEffect(counters={"water": activity.value})
    if activity.activity_type == "exercise":
        burned = metadata.get("calories_burned")
        return ActivityEffect(
            counters={"exercise": activity.value},
            calories_burned=round2(float(burned)) if burned is not None else 0.0,
        )
    return ActivityEffect()


def apply_activity(progress: Progress, activity: Activity) -> Progress:
    """Append an activity and add its effect.

    Raises InvalidArgumentError if any counter would exceed its hard cap.
    The check runs against the current counter, including values written by
    ``apply_update``, which has no ceiling: a counter set at or near its cap
    rejects every activity that would push it past the cap.
    """
    effect = activity_effect(activity)
    counters = progress.current.as_dict()
    for name, delta in effect.counters.items():
        updated = round2(counters[name] + delta)
        if updated > PROGRESS_CAPS[name]:
            raise InvalidArgumentError(
                f"{name} progress cannot exceed {PROGRESS_CAPS[name]:g}"
            )
        counters[name] = updated
    nutritional = dict(progress.nutritional)
    for name, delta in effect.nutritional.items():
        nutritional[name] = round2(nutritional.get(name, 0.0) + delta)
    burned = round2(progress.summary.calories_burned + effect.calories_burned)
    return replace(
        progress,
        current=ProgressCounters(**counters),
        nutritional=nutritional,
        activities=(*progress.activities, activity),
        summary=replace(progress.summary, calories_burned=burned),
    )


def revert_activity(progress: Progress, activity_id: UUID) -> Progress:
    """Remove an activity and subtract its effect, clamping at zero."""
    activity = progress.find_activity(activity_id)
    if activity is None:
        raise NotFoundError(f"Activity {activity_id} not found")
    effect = activity_effect(activity)
    counters = progress.current.as_dict()
    for name, delta in effect.counters.items():
        counters[name] = max(0.0, round2(counters[name] - delta))
    nutritional = dict(progress.nutritional)
    for name, delta in effect.nutritional.items():
        nutritional[name] = max(0.0, round2(nutritional.get(name, 0.0) - delta))
    burned = max(0.0, round2(progress.summary.calories_burned - effect.calories_burned))
    return replace(
        progress,
        current=ProgressCounters(**counters),
        nutritional=nutritional,
        activities=tuple(
            item for item in progress.activities if item.id != activity_id
        ),
        summary=replace(progress.summary, calories_burned=burned),
    )


def apply_update(
    progress: Progress, field_name: str, value: object, operation: str = "add"
) -> Progress:
    """Add to, set, or subtract from one counter; the result never goes below 0."""
    number = validate_update(field_name, value, operation)
    updated = _combine(getattr(progress.current, field_name), number, operation)
    return replace(progress, current=replace(progress.current, **{field_name: updated}))


def apply_custom_update(
    progress: Progress, custom_goal: CustomGoal, value: object, operation: str = "add"
) -> Progress:
    """Update progress towards a custom goal and its completion flag."""
    number = validate_operation(value, operation)
    entries = list(progress.custom_progress)
    index = next(
        (i for i, entry in enumerate(entries) if entry.goal_id == custom_goal.id),
        None,
    )
    existing = entries[index] if index is not None else CustomProgress(custom_goal.id)
    current = _combine(existing.current, number, operation)
    updated = CustomProgress(
        goal_id=custom_goal.id,
        current=current,
        is_completed=current >= custom_goal.target,
    )
    if index is None:
        entries.append(updated)
    else:
        entries[index] = updated
    return replace(progress, custom_progress=tuple(entries))


def refresh_summary(progress: Progress, completed_goals: int | None = None) -> Progress:
    """Recompute the derived summary fields from the current state."""
    consumed = progress.current.calories
    burned = progress.summary.calories_burned
    return replace(
        progress,
        summary=ProgressSummary(
            calories_consumed=consumed,
            calories_burned=burned,
            net_calories=round2(consumed - burned),
            total_activities=len(progress.activities),
            completed_goals=(
                progress.summary.completed_goals
                if completed_goals is None
                else completed_goals
            ),
        ),
    )


def validate_update(field_name: str, value: object, operation: str) -> float:
    """Check a counter update before any mutation."""
    if field_name not in TARGET_FIELDS:
        raise InvalidArgumentError(f"Invalid progress type: {field_name}")
    return validate_operation(value, operation)


def validate_operation(value: object, operation: str) -> float:
    """Check an add/set/subtract operand and return it rounded."""
    if operation not in UPDATE_OPERATIONS:
        raise InvalidArgumentError(f"Invalid operation: {operation}")
    return round2(require_non_negative(value, "Progress value"))


def _combine(current: float, value: float, operation: str) -> float:
    if operation == "set":
        result = value
    elif operation == "subtract":
        result = current - value
    else:
        result = current + value
    return max(0.0, round2(result))


def _nutrition_from_metadata(metadata: Mapping[str, object]) -> dict[str, float]:
    nutrition = metadata.get("nutrition")
    if not isinstance(nutrition, Mapping):
        return {}
    return {
        name: round2(float(nutrition[name]))
        for name in NUTRIENT_FIELDS
        if isinstance(nutrition.get(name), int | float)
        and not isinstance(nutrition.get(name), bool)
    }
