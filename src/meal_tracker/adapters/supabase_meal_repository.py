"""Supabase repository for meal items."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.adapters.rows import parse_timestamp, serialize_payload
from meal_tracker.domain.meals import MealCategory, MealItem
from meal_tracker.services.meals import MealItemRepository

_TABLE = "meal_items"


@dataclass
class SupabaseMealItemRepository(MealItemRepository):
    """Supabase implementation for the meal item catalog."""

    client: Client

    def list_meals(self, user_id: UUID) -> list[MealItem]:
        """Return meal items ordered by usage count then name."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("usage_count", desc=True)
            .order("name", desc=False)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealItem | None:
        """Return a meal item by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def create_meal(self, user_id: UUID, payload: dict[str, object]) -> MealItem:
        """Create a meal item row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "user_id": str(user_id),
                    **serialize_payload(payload),
                    "usage_count": 0,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal item")
        return _parse_meal(response.data[0])

    def update_meal(
        self, user_id: UUID, meal_id: UUID, payload: dict[str, object]
    ) -> None:
        """Update a meal item row."""
        self.client.table(_TABLE).update(
            {
                **serialize_payload(payload),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("user_id", str(user_id)).eq("id", str(meal_id)).execute()

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal item row."""
        self.client.table(_TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(meal_id)
        ).execute()

    def increment_usage(self, user_id: UUID, meal_id: UUID) -> None:
        """Increment the usage count in a single server-side statement."""
        self.client.rpc(
            "increment_usage_count",
            {
                "target_table": _TABLE,
                "row_id": str(meal_id),
                "owner_id": str(user_id),
            },
        ).execute()


def _parse_meal(row: dict[str, object]) -> MealItem:
    created_at = parse_timestamp(row.get("created_at"))
    default_calories = row.get("default_calories")
    place_id = row.get("place_id")
    return MealItem(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
        default_calories=int(default_calories)
        if isinstance(default_calories, int | float)
        else None,
        category=MealCategory(str(row.get("category") or MealCategory.OTHER)),
        usage_count=int(row.get("usage_count") or 0),
        place_id=UUID(str(place_id)) if place_id else None,
        created_at=created_at,
        updated_at=parse_timestamp(row.get("updated_at"), default=created_at),
    )
