"""Supabase repository for meals."""

from dataclasses import asdict, dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from health_tracker.domain.dates import parse_timestamp, start_of_day
from health_tracker.domain.errors import ConflictError
from health_tracker.domain.meals import Meal
from health_tracker.domain.nutrition import FoodEntry, NutritionTotals
from health_tracker.services.meals import MealRepository

_COLUMNS = (
    "id, user_id, name, meal_type, day, foods, total_nutrition, status, "
    "description, planned_time, notes, tags, rating, consumed_at, created_at, "
    "updated_at"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals."""

    client: Client

    def create_meal(self, meal: Meal) -> Meal:
        """Insert a meal row."""
        response = self.client.table("meals").insert(_serialize(meal)).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return _parse_meal(response.data[0])

    def get_meal(self, meal_id: UUID) -> Meal | None:
        """Return a meal by id."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def update_meal(self, meal: Meal, expected_status: str) -> Meal:
        """Update a meal row whose stored status is still ``expected_status``."""
        payload = _serialize(meal)
        payload.pop("id")
        payload.pop("created_at")
        response = (
            self.client.table("meals")
            .update(payload)
            .eq("id", str(meal.id))
            .eq("status", expected_status)
            .execute()
        )
        if not response.data:
            raise ConflictError("Meal was modified concurrently")
        return _parse_meal(response.data[0])

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal row."""
        self.client.table("meals").delete().eq("id", str(meal_id)).execute()

    def list_meals(self, user_id: str, start: date, end: date) -> list[Meal]:
        """Return meals in the day range ordered by day and planned time."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=False)
            .order("planned_time", desc=False)
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def search_meals(
        self,
        user_id: str,
        query: str | None,
        meal_type: str | None,
        status: str | None,
        limit: int,
    ) -> list[Meal]:
        """Return the newest meals matching the filters."""
        request = self.client.table("meals").select(_COLUMNS).eq("user_id", user_id)
        if query:
            request = request.ilike("name", f"%{query}%")
        if meal_type:
            request = request.eq("meal_type", meal_type)
        if status:
            request = request.eq("status", status)
        response = request.order("day", desc=True).limit(limit).execute()
        return [_parse_meal(row) for row in response.data or []]


def _serialize(meal: Meal) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "user_id": meal.user_id,
        "name": meal.name,
        "meal_type": meal.meal_type,
        "day": meal.day.isoformat(),
        "foods": [asdict(food) for food in meal.foods],
        "total_nutrition": asdict(meal.total_nutrition),
        "status": meal.status,
        "description": meal.description,
        "planned_time": meal.planned_time,
        "notes": meal.notes,
        "tags": list(meal.tags),
        "rating": meal.rating,
        "consumed_at": meal.consumed_at.isoformat() if meal.consumed_at else None,
        "created_at": meal.created_at.isoformat() if meal.created_at else None,
        "updated_at": meal.updated_at.isoformat() if meal.updated_at else None,
    }


def _parse_meal(row: dict[str, object]) -> Meal:
    totals = row.get("total_nutrition") or {}
    rating = row.get("rating")
    return Meal(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        name=str(row.get("name", "")),
        meal_type=str(row["meal_type"]),
        day=start_of_day(str(row["day"])),
        foods=tuple(_parse_food(item) for item in row.get("foods") or []),
        total_nutrition=NutritionTotals(
            **{name: float(value) for name, value in totals.items()}
        ),
        status=str(row.get("status") or "planned"),
        description=row.get("description"),
        planned_time=row.get("planned_time"),
        notes=row.get("notes"),
        tags=tuple(row.get("tags") or ()),
        rating=int(rating) if rating is not None else None,
        consumed_at=parse_timestamp(row.get("consumed_at")),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def _parse_food(item: dict[str, object]) -> FoodEntry:
    return FoodEntry(
        name=str(item.get("name", "")),
        quantity=float(item.get("quantity", 0.0)),
        unit=str(item.get("unit", "")),
        calories=float(item.get("calories", 0.0)),
        nutrition={
            name: float(value) for name, value in (item.get("nutrition") or {}).items()
        },
        food_id=item.get("food_id"),
    )
