"""Completion statistics over stored progress."""

from dataclasses import dataclass
from datetime import date, datetime

from health_tracker.domain.dates import start_of_day, validate_range, week_bounds
from health_tracker.domain.progress import Progress
from health_tracker.domain.stats import DayProgress, WeeklyStats
from health_tracker.services.completion import completion_stats, weekly_rollup
from health_tracker.services.goals import GoalRepository
from health_tracker.services.progress import ProgressRepository


@dataclass
class StatsService:
    """Service for computing completion over days and weeks."""

    progress_repository: ProgressRepository
    goal_repository: GoalRepository

    def weekly(self, user_id: str, day: date | datetime | str) -> WeeklyStats:
        """Return the completion rollup for the Monday-to-Sunday week of ``day``."""
        start, end = week_bounds(start_of_day(day))
        progress = self._sorted_progress(user_id, start, end)
        return WeeklyStats(
            start_date=start,
            end_date=end,
            total_days=len(progress),
            rollup=weekly_rollup(progress, self.goal_repository.get_goal),
        )

    def progress_range(
        self,
        user_id: str,
        start: date | datetime | str,
        end: date | datetime | str,
    ) -> list[DayProgress]:
        """Return each stored day in the range with its goal and completion."""
        start_day, end_day = validate_range(start, end)
        days = []
        for progress in self._sorted_progress(user_id, start_day, end_day):
            goal = self.goal_repository.get_goal(progress.goal_id)
            days.append(
                DayProgress(
                    progress=progress,
                    goal=goal,
                    stats=completion_stats(goal, progress),
                )
            )
        return days

    def _sorted_progress(self, user_id: str, start: date, end: date) -> list[Progress]:
        rows = self.progress_repository.list_progress(user_id, start, end)
        return sorted(rows, key=lambda progress: progress.day)
