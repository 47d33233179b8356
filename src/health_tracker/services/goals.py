"""Daily goal definitions."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4

from health_tracker.domain.dates import (
    Clock,
    start_of_day,
    today,
    utc_now,
    validate_range,
)
from health_tracker.domain.errors import ConflictError, NotFoundError
from health_tracker.domain.goals import (
    CustomGoal,
    DailyTargets,
    Goal,
    NutritionalTargets,
    build_custom_goals,
    validate_nutritional_targets,
    validate_targets,
)

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for goals.

    Implementations enforce at most one active goal per (user, day) and raise
    ConflictError when ``create_goal`` would violate it.
    """

    def create_goal(self, goal: Goal) -> Goal:
        """Insert a goal and return it."""

    def get_goal(self, goal_id: UUID) -> Goal | None:
        """Return a goal by id, if present."""

    def get_active_goal(self, user_id: str, day: date) -> Goal | None:
        """Return the active goal for a user and day, if present."""

    def list_active_goals(self, user_id: str, start: date, end: date) -> list[Goal]:
        """Return active goals with start <= day <= end, newest first."""

    def update_goal(self, goal: Goal) -> Goal:
        """Persist a modified goal and return it."""


@dataclass
class GoalService:
    """Creates, merges and soft-deletes daily goals."""

    repository: GoalRepository
    clock: Clock = utc_now

    def create(
        self,
        user_id: str,
        day: date | datetime | str,
        targets: Mapping[str, object],
        nutritional_targets: Mapping[str, object] | None = None,
        custom_goals: list[Mapping[str, object]] | None = None,
    ) -> Goal:
        """Create the goal for a day; fails if an active one already exists."""
        goal_day = start_of_day(day)
        validated = validate_targets(targets)
        nutritional = validate_nutritional_targets(nutritional_targets)
        customs = build_custom_goals(custom_goals)
        if self.repository.get_active_goal(user_id, goal_day) is not None:
            raise ConflictError(
                "Goals already exist for this date. Update them instead."
            )
        now = self.clock()
        goal = Goal(
            id=uuid4(),
            user_id=user_id,
            day=goal_day,
            targets=DailyTargets(**validated),
            nutritional_targets=NutritionalTargets(**nutritional),
            custom_goals=customs,
            created_at=now,
            updated_at=now,
        )
        created = self.repository.create_goal(goal)
        _logger.info("Goal created: user_id=%s day=%s", user_id, goal_day)
        return created

    def get(self, goal_id: UUID) -> Goal:
        """Return a goal by id or raise NotFoundError."""
        goal = self.repository.get_goal(goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        return goal

    def get_for_date(self, user_id: str, day: date | datetime | str) -> Goal | None:
        """Return the active goal for a day, if any."""
        return self.repository.get_active_goal(user_id, start_of_day(day))

    def get_current(self, user_id: str, timezone_name: str = "UTC") -> Goal | None:
        """Return today's active goal in the user's timezone."""
        return self.repository.get_active_goal(
            user_id, today(self.clock, timezone_name)
        )

    def list_range(
        self,
        user_id: str,
        start: date | datetime | str,
        end: date | datetime | str,
    ) -> list[Goal]:
        """Return active goals in an inclusive day range."""
        start_day, end_day = validate_range(start, end)
        return self.repository.list_active_goals(user_id, start_day, end_day)

    def update(
        self,
        goal_id: UUID,
        targets: Mapping[str, object] | None = None,
        nutritional_targets: Mapping[str, object] | None = None,
        custom_goals: list[Mapping[str, object]] | None = None,
    ) -> Goal:
        """Merge target changes; custom goals are replaced when provided."""
        goal = self.get(goal_id)
        target_changes = validate_targets(targets or {}, partial=True)
        nutritional_changes = validate_nutritional_targets(nutritional_targets)
        customs = (
            build_custom_goals(custom_goals)
            if custom_goals is not None
            else goal.custom_goals
        )
        updated = replace(
            goal,
            targets=replace(goal.targets, **target_changes),
            nutritional_targets=replace(
                goal.nutritional_targets, **nutritional_changes
            ),
            custom_goals=customs,
            updated_at=self.clock(),
        )
        return self.repository.update_goal(updated)

    def deactivate(self, goal_id: UUID) -> Goal:
        """Soft-delete a goal; progress that references it is left alone."""
        goal = self.get(goal_id)
        if not goal.is_active:
            return goal
        deactivated = self.repository.update_goal(
            replace(goal, is_active=False, updated_at=self.clock())
        )
        _logger.info("Goal deactivated: goal_id=%s", goal_id)
        return deactivated

    def set_custom_goal_completed(
        self, goal_id: UUID, custom_goal_id: str, is_completed: bool
    ) -> CustomGoal:
        """Flip the completion flag of one custom goal."""
        goal = self.get(goal_id)
        if goal.custom_goal(custom_goal_id) is None:
            raise NotFoundError(f"Custom goal {custom_goal_id} not found")
        customs = tuple(
            replace(custom, is_completed=is_completed)
            if custom.id == custom_goal_id
            else custom
            for custom in goal.custom_goals
        )
        updated = self.repository.update_goal(
            replace(goal, custom_goals=customs, updated_at=self.clock())
        )
        return updated.custom_goal(custom_goal_id)  # type: ignore[return-value]
