"""Progress ledger service.

Every mutator re-reads the progress document, applies one ledger rule, and
writes it back with a compare-and-set on ``version`` so derived fields are
always recomputed from the state that was just read.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4

from health_tracker.domain.dates import (
    Clock,
    start_of_day,
    utc_now,
    validate_range,
)
from health_tracker.domain.errors import NotFoundError
from health_tracker.domain.progress import (
    Activity,
    ActivityInput,
    Progress,
    apply_activity,
    apply_custom_update,
    apply_update,
    refresh_summary,
    revert_activity,
    validate_activity,
    validate_operation,
    validate_update,
)
from health_tracker.services.completion import completion_stats
from health_tracker.services.goals import GoalRepository

_logger = logging.getLogger(__name__)


class ProgressRepository(Protocol):
    """Persistence interface for progress documents.

    Implementations keep (user_id, goal_id, day) unique.
    """

    def get_or_create_progress(self, progress: Progress) -> Progress:
        """Insert ``progress`` unless its key exists; return the stored document."""

    def get_progress(self, progress_id: UUID) -> Progress | None:
        """Return a progress document by id, if present."""

    def find_progress(self, user_id: str, goal_id: UUID, day: date) -> Progress | None:
        """Return the progress for a (user, goal, day) key, if present."""

    def list_progress(self, user_id: str, start: date, end: date) -> list[Progress]:
        """Return progress with start <= day <= end, oldest first."""

    def save_progress(self, progress: Progress, expected_version: int) -> Progress:
        """Write if the stored version equals ``expected_version``.

        Returns the stored document with its version bumped and raises
        ConflictError when the stored version differs.
        """

    def delete_progress(self, progress_id: UUID) -> None:
        """Delete a progress document."""


@dataclass
class ProgressService:
    """Keeps the daily aggregate consistent with its activity ledger."""

    repository: ProgressRepository
    goal_repository: GoalRepository
    clock: Clock = utc_now

    def get_or_create(
        self, user_id: str, goal_id: UUID, day: date | datetime | str
    ) -> Progress:
        """Return the progress for a key, creating an empty one if needed."""
        now = self.clock()
        candidate = Progress(
            id=uuid4(),
            user_id=user_id,
            goal_id=goal_id,
            day=start_of_day(day),
            created_at=now,
            updated_at=now,
        )
        return self.repository.get_or_create_progress(candidate)

    def get(self, progress_id: UUID) -> Progress:
        """Return a progress document or raise NotFoundError."""
        progress = self.repository.get_progress(progress_id)
        if progress is None:
            raise NotFoundError(f"Progress {progress_id} not found")
        return progress

    def get_for_date(self, user_id: str, day: date | datetime | str) -> Progress:
        """Return the progress for the day's active goal."""
        progress_day = start_of_day(day)
        goal = self.goal_repository.get_active_goal(user_id, progress_day)
        if goal is None:
            raise NotFoundError(f"No goals found for {progress_day.isoformat()}")
        return self.get_or_create(user_id, goal.id, progress_day)

    def list_range(
        self,
        user_id: str,
        start: date | datetime | str,
        end: date | datetime | str,
    ) -> list[Progress]:
        """Return progress documents in an inclusive day range."""
        start_day, end_day = validate_range(start, end)
        return self.repository.list_progress(user_id, start_day, end_day)

    def add_activity(self, progress: Progress, activity: ActivityInput) -> Progress:
        """Append an activity to the ledger and apply its accumulation rule."""
        validated = validate_activity(activity)
        current = self._reload(progress)
        now = self.clock()
        entry = Activity(
            id=uuid4(),
            activity_type=validated.activity_type,
            description=validated.description,
            value=validated.value,
            unit=validated.unit,
            timestamp=now,
            food_id=validated.food_id,
            exercise_type=validated.exercise_type,
            metadata=validated.metadata,
        )
        updated = apply_activity(current, entry)
        saved = self._persist(current, replace(updated, last_activity_at=now))
        _logger.info(
            "Activity added: progress_id=%s type=%s value=%s",
            saved.id,
            entry.activity_type,
            entry.value,
        )
        return saved

    def remove_activity(self, progress: Progress, activity_id: UUID) -> Progress:
        """Remove an activity and apply the inverse of its rule."""
        current = self._reload(progress)
        updated = revert_activity(current, activity_id)
        saved = self._persist(current, replace(updated, last_activity_at=self.clock()))
        _logger.info(
            "Activity removed: progress_id=%s activity_id=%s", saved.id, activity_id
        )
        return saved

    def update_progress(
        self,
        progress: Progress,
        field_name: str,
        value: object,
        operation: str = "add",
    ) -> Progress:
        """Add to, set, or subtract from one counter outside the ledger."""
        validate_update(field_name, value, operation)
        current = self._reload(progress)
        return self._persist(
            current, apply_update(current, field_name, value, operation)
        )

    def update_custom_progress(
        self,
        progress: Progress,
        custom_goal_id: str,
        value: object,
        operation: str = "add",
    ) -> Progress:
        """Update progress towards one of the goal's custom goals."""
        validate_operation(value, operation)
        current = self._reload(progress)
        goal = self.goal_repository.get_goal(current.goal_id)
        custom_goal = goal.custom_goal(custom_goal_id) if goal else None
        if custom_goal is None:
            raise NotFoundError(f"Custom goal {custom_goal_id} not found")
        return self._persist(
            current, apply_custom_update(current, custom_goal, value, operation)
        )

    def delete_for_day(self, user_id: str, day: date | datetime | str) -> None:
        """Delete the progress for the day's active goal."""
        progress_day = start_of_day(day)
        goal = self.goal_repository.get_active_goal(user_id, progress_day)
        if goal is None:
            raise NotFoundError(f"No goals found for {progress_day.isoformat()}")
        progress = self.repository.find_progress(user_id, goal.id, progress_day)
        if progress is None:
            raise NotFoundError(f"No progress found for {progress_day.isoformat()}")
        self.repository.delete_progress(progress.id)
        _logger.info("Progress deleted: progress_id=%s", progress.id)

    def _reload(self, progress: Progress) -> Progress:
        return self.get(progress.id)

    def _persist(self, original: Progress, updated: Progress) -> Progress:
        goal = self.goal_repository.get_goal(updated.goal_id)
        completed = completion_stats(goal, updated).completed
        stamped = replace(updated, updated_at=self.clock())
        refreshed = refresh_summary(stamped, completed)
        return self.repository.save_progress(
            refreshed, expected_version=original.version
        )
