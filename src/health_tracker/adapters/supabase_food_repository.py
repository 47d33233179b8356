"""Supabase repository for the food catalog."""

from dataclasses import dataclass

from supabase import Client

from health_tracker.domain.nutrition import FoodRecord
from health_tracker.services.foods import FoodRepository


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase implementation for food lookups."""

    client: Client

    def get_food(self, food_id: str) -> FoodRecord | None:
        """Return a food by id."""
        response = (
            self.client.table("foods")
            .select("id, name, brand, serving_size, serving_unit, nutrients")
            .eq("id", food_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return FoodRecord(
            id=str(row["id"]),
            name=str(row.get("name", "")),
            serving_size=float(row.get("serving_size") or 0.0),
            serving_unit=str(row.get("serving_unit") or "g"),
            nutrients=dict(row.get("nutrients") or {}),
            brand=row.get("brand"),
        )
