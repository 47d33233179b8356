"""Domain models for completion statistics."""

from dataclasses import dataclass, field
from datetime import date

from health_tracker.domain.goals import Goal
from health_tracker.domain.progress import Progress


@dataclass(frozen=True)
class CompletionStats:
    """How many of the six canonical goals are met."""

    completed: int
    total: int
    percentage: int


@dataclass(frozen=True)
class DailyCompletion:
    """Completion for one day, kept for charting."""

    day: date
    completed: int
    total: int
    percentage: int


@dataclass(frozen=True)
class CompletionRollup:
    """Completion accumulated over a list of days."""

    total_completed: int
    total_possible: int
    completion_rate: int
    per_day: list[DailyCompletion] = field(default_factory=list)


@dataclass(frozen=True)
class WeeklyStats:
    """Completion rollup for a Monday-to-Sunday week."""

    start_date: date
    end_date: date
    total_days: int
    rollup: CompletionRollup


@dataclass(frozen=True)
class DayProgress:
    """One day's progress with the goal it is measured against."""

    progress: Progress
    goal: Goal | None
    stats: CompletionStats
