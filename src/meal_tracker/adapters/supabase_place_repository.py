"""Supabase repository for places."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.adapters.rows import parse_timestamp, serialize_payload
from meal_tracker.domain.places import Place, PlaceType
from meal_tracker.services.places import PlaceRepository

_TABLE = "places"


@dataclass
class SupabasePlaceRepository(PlaceRepository):
    """Supabase implementation for places."""

    client: Client

    def list_places(self, user_id: UUID) -> list[Place]:
        """Return places ordered by usage count then name."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("usage_count", desc=True)
            .order("name", desc=False)
            .execute()
        )
        return [_parse_place(row) for row in response.data or []]

    def get_place(self, user_id: UUID, place_id: UUID) -> Place | None:
        """Return a place by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(place_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_place(response.data[0])

    def create_place(self, user_id: UUID, payload: dict[str, object]) -> Place:
        """Create a place row and return it."""
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
            raise RuntimeError("Failed to create place")
        return _parse_place(response.data[0])

    def update_place(
        self, user_id: UUID, place_id: UUID, payload: dict[str, object]
    ) -> None:
        """Update a place row."""
        self.client.table(_TABLE).update(
            {
                **serialize_payload(payload),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("user_id", str(user_id)).eq("id", str(place_id)).execute()

    def delete_place(self, user_id: UUID, place_id: UUID) -> None:
        """Delete a place row."""
        self.client.table(_TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(place_id)
        ).execute()

    def increment_usage(self, user_id: UUID, place_id: UUID) -> None:
        """Increment the usage count in a single server-side statement."""
        self.client.rpc(
            "increment_usage_count",
            {
                "target_table": _TABLE,
                "row_id": str(place_id),
                "owner_id": str(user_id),
            },
        ).execute()


def _parse_place(row: dict[str, object]) -> Place:
    """Parse a place row into a domain model."""
    created_at = parse_timestamp(row.get("created_at"))
    return Place(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
        type=PlaceType(str(row.get("type") or PlaceType.OTHER)),
        address=row.get("address"),
        is_home=bool(row.get("is_home", False)),
        usage_count=int(row.get("usage_count") or 0),
        created_at=created_at,
        updated_at=parse_timestamp(row.get("updated_at"), default=created_at),
    )
