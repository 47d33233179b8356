"""Completion statistics over goals and progress."""

from collections.abc import Callable, Iterable, Mapping
from uuid import UUID

from health_tracker.domain.errors import InvalidArgumentError
from health_tracker.domain.goals import TARGET_FIELDS, Goal
from health_tracker.domain.numbers import round_percent
from health_tracker.domain.progress import Progress, ProgressCounters
from health_tracker.domain.stats import (
    CompletionRollup,
    CompletionStats,
    DailyCompletion,
)


def completion_stats(goal: Goal | None, progress: Progress | None) -> CompletionStats:
    """Count the canonical fields whose current value meets the target."""
    total = len(TARGET_FIELDS)
    if goal is None or progress is None:
        return CompletionStats(completed=0, total=total, percentage=0)
    completed = sum(
        1 for name in TARGET_FIELDS if is_goal_completed(goal, name, progress.current)
    )
    return CompletionStats(
        completed=completed,
        total=total,
        percentage=round_percent(completed, total),
    )


def is_goal_completed(
    goal: Goal,
    field_name: str,
    current: ProgressCounters | Mapping[str, float] | None,
) -> bool:
    """Return True when one canonical field has reached its target."""
    if field_name not in TARGET_FIELDS:
        raise InvalidArgumentError(f"Invalid goal type: {field_name}")
    target = getattr(goal.targets, field_name)
    if current is None:
        value = 0.0
    elif isinstance(current, Mapping):
        value = current.get(field_name) or 0.0
    else:
        value = getattr(current, field_name)
    return value >= target


def weekly_rollup(
    progress_list: Iterable[Progress],
    goal_lookup: Callable[[UUID], Goal | None],
) -> CompletionRollup:
    """Accumulate completion over date-ordered progress records.

    A progress whose goal cannot be resolved counts as nothing completed.
    """
    per_day: list[DailyCompletion] = []
    total_completed = 0
    total_possible = 0
    for progress in progress_list:
        stats = completion_stats(goal_lookup(progress.goal_id), progress)
        total_completed += stats.completed
        total_possible += stats.total
        per_day.append(
            DailyCompletion(
                day=progress.day,
                completed=stats.completed,
                total=stats.total,
                percentage=stats.percentage,
            )
        )
    return CompletionRollup(
        total_completed=total_completed,
        total_possible=total_possible,
        completion_rate=round_percent(total_completed, total_possible),
        per_day=per_day,
    )
