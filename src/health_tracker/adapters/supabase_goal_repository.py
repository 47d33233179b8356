"""Supabase repository for daily goals."""

from dataclasses import asdict, dataclass
from datetime import date
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from health_tracker.domain.dates import parse_timestamp, start_of_day
from health_tracker.domain.errors import ConflictError
from health_tracker.domain.goals import (
    CustomGoal,
    DailyTargets,
    Goal,
    NutritionalTargets,
    nutritional_targets_as_dict,
    targets_as_dict,
)
from health_tracker.services.goals import GoalRepository

UNIQUE_VIOLATION = "23505"
_COLUMNS = (
    "id, user_id, day, targets, nutritional_targets, custom_goals, is_active, "
    "created_at, updated_at"
)


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for goals.

    The ``goals`` table carries a partial unique index on (user_id, day)
    where ``is_active``.
    """

    client: Client

    def create_goal(self, goal: Goal) -> Goal:
        """Insert a goal row."""
        try:
            response = self.client.table("goals").insert(_serialize(goal)).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise ConflictError(
                    "Goals already exist for this date. Update them instead."
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create goal")
        return _parse_goal(response.data[0])

    def get_goal(self, goal_id: UUID) -> Goal | None:
        """Return a goal by id."""
        response = (
            self.client.table("goals")
            .select(_COLUMNS)
            .eq("id", str(goal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def get_active_goal(self, user_id: str, day: date) -> Goal | None:
        """Return the active goal for a user and day."""
        response = (
            self.client.table("goals")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .eq("day", day.isoformat())
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def list_active_goals(self, user_id: str, start: date, end: date) -> list[Goal]:
        """Return active goals in the day range, newest first."""
        response = (
            self.client.table("goals")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .eq("is_active", True)
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=True)
            .execute()
        )
        return [_parse_goal(row) for row in response.data or []]

    def update_goal(self, goal: Goal) -> Goal:
        """Update a goal row."""
        payload = _serialize(goal)
        payload.pop("id")
        payload.pop("created_at")
        response = (
            self.client.table("goals").update(payload).eq("id", str(goal.id)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update goal")
        return _parse_goal(response.data[0])


def _serialize(goal: Goal) -> dict[str, object]:
    return {
        "id": str(goal.id),
        "user_id": goal.user_id,
        "day": goal.day.isoformat(),
        "targets": targets_as_dict(goal.targets),
        "nutritional_targets": nutritional_targets_as_dict(goal.nutritional_targets),
        "custom_goals": [asdict(custom) for custom in goal.custom_goals],
        "is_active": goal.is_active,
        "created_at": goal.created_at.isoformat() if goal.created_at else None,
        "updated_at": goal.updated_at.isoformat() if goal.updated_at else None,
    }


def _parse_goal(row: dict[str, object]) -> Goal:
    targets = row.get("targets") or {}
    nutritional = row.get("nutritional_targets") or {}
    return Goal(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        day=start_of_day(str(row["day"])),
        targets=DailyTargets(**{name: float(value) for name, value in targets.items()}),
        nutritional_targets=NutritionalTargets(
            **{name: float(value) for name, value in nutritional.items()}
        ),
        custom_goals=tuple(
            CustomGoal(
                id=str(item["id"]),
                name=str(item.get("name", "")),
                target=float(item.get("target", 0.0)),
                unit=str(item.get("unit", "")),
                category=str(item.get("category", "other")),
                is_completed=bool(item.get("is_completed", False)),
            )
            for item in row.get("custom_goals") or []
        ),
        is_active=bool(row.get("is_active", True)),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )
