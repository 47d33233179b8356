"""Supabase repository for daily progress."""

from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from health_tracker.domain.dates import parse_timestamp, start_of_day
from health_tracker.domain.errors import ConflictError
from health_tracker.domain.progress import (
    Activity,
    CustomProgress,
    Progress,
    ProgressCounters,
    ProgressSummary,
)
from health_tracker.services.progress import ProgressRepository

_COLUMNS = (
    "id, user_id, goal_id, day, current, nutritional, activities, summary, "
    "custom_progress, version, created_at, updated_at, last_activity_at"
)


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase implementation for progress.

    The ``progress`` table is unique on (user_id, goal_id, day) and carries an
    integer ``version`` used for compare-and-set writes.
    """

    client: Client

    def get_or_create_progress(self, progress: Progress) -> Progress:
        """Insert unless the key exists, then read the stored row back."""
        self.client.table("progress").upsert(
            _serialize(progress),
            on_conflict="user_id,goal_id,day",
            ignore_duplicates=True,
        ).execute()
        stored = self.find_progress(progress.user_id, progress.goal_id, progress.day)
        if stored is None:
            raise RuntimeError("Failed to create progress")
        return stored

    def get_progress(self, progress_id: UUID) -> Progress | None:
        """Return progress by id."""
        response = (
            self.client.table("progress")
            .select(_COLUMNS)
            .eq("id", str(progress_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_progress(response.data[0])

    def find_progress(self, user_id: str, goal_id: UUID, day: date) -> Progress | None:
        """Return progress for a (user, goal, day) key."""
        response = (
            self.client.table("progress")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .eq("goal_id", str(goal_id))
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_progress(response.data[0])

    def list_progress(self, user_id: str, start: date, end: date) -> list[Progress]:
        """Return progress in the day range, oldest first."""
        response = (
            self.client.table("progress")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=False)
            .execute()
        )
        return [_parse_progress(row) for row in response.data or []]

    def save_progress(self, progress: Progress, expected_version: int) -> Progress:
        """Write the row only if its version is still ``expected_version``."""
        payload = _serialize(replace(progress, version=expected_version + 1))
        payload.pop("id")
        payload.pop("created_at")
        response = (
            self.client.table("progress")
            .update(payload)
            .eq("id", str(progress.id))
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise ConflictError(
                f"Progress {progress.id} was modified concurrently; reload and retry"
            )
        return _parse_progress(response.data[0])

    def delete_progress(self, progress_id: UUID) -> None:
        """Delete a progress row."""
        self.client.table("progress").delete().eq("id", str(progress_id)).execute()


def _serialize(progress: Progress) -> dict[str, object]:
    return {
        "id": str(progress.id),
        "user_id": progress.user_id,
        "goal_id": str(progress.goal_id),
        "day": progress.day.isoformat(),
        "current": progress.current.as_dict(),
        "nutritional": dict(progress.nutritional),
        "activities": [_serialize_activity(item) for item in progress.activities],
        "summary": asdict(progress.summary),
        "custom_progress": [asdict(item) for item in progress.custom_progress],
        "version": progress.version,
        "created_at": _isoformat(progress.created_at),
        "updated_at": _isoformat(progress.updated_at),
        "last_activity_at": _isoformat(progress.last_activity_at),
    }


def _serialize_activity(activity: Activity) -> dict[str, object]:
    return {
        "id": str(activity.id),
        "activity_type": activity.activity_type,
        "description": activity.description,
        "value": activity.value,
        "unit": activity.unit,
        "timestamp": activity.timestamp.isoformat(),
        "food_id": activity.food_id,
        "exercise_type": activity.exercise_type,
        "metadata": dict(activity.metadata),
    }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_progress(row: dict[str, object]) -> Progress:
    current = row.get("current") or {}
    summary = row.get("summary") or {}
    return Progress(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        goal_id=UUID(str(row["goal_id"])),
        day=start_of_day(str(row["day"])),
        current=ProgressCounters(
            **{name: float(value) for name, value in current.items()}
        ),
        nutritional={
            name: float(value)
            for name, value in (row.get("nutritional") or {}).items()
        },
        activities=tuple(
            _parse_activity(item) for item in row.get("activities") or []
        ),
        summary=ProgressSummary(
            calories_consumed=float(summary.get("calories_consumed", 0.0)),
            calories_burned=float(summary.get("calories_burned", 0.0)),
            net_calories=float(summary.get("net_calories", 0.0)),
            total_activities=int(summary.get("total_activities", 0)),
            completed_goals=int(summary.get("completed_goals", 0)),
        ),
        custom_progress=tuple(
            CustomProgress(
                goal_id=str(item["goal_id"]),
                current=float(item.get("current", 0.0)),
                is_completed=bool(item.get("is_completed", False)),
            )
            for item in row.get("custom_progress") or []
        ),
        version=int(row.get("version") or 0),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        last_activity_at=parse_timestamp(row.get("last_activity_at")),
    )


def _parse_activity(item: dict[str, object]) -> Activity:
    return Activity(
        id=UUID(str(item["id"])),
        activity_type=str(item["activity_type"]),
        description=str(item.get("description", "")),
        value=float(item.get("value", 0.0)),
        unit=str(item.get("unit", "")),
        timestamp=parse_timestamp(item.get("timestamp")),  # type: ignore[arg-type]
        food_id=item.get("food_id"),
        exercise_type=item.get("exercise_type"),
        metadata=dict(item.get("metadata") or {}),
    )
