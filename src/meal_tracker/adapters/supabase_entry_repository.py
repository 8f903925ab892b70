"""Supabase repository for meal entries."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.adapters.rows import (
    entry_item_to_json,
    meal_snapshot_to_json,
    parse_entry_item,
    parse_meal_snapshot,
    parse_place_snapshot,
    parse_timestamp,
    place_snapshot_to_json,
    serialize_value,
)
from meal_tracker.domain.entries import (
    EntryDraft,
    EntryItem,
    EntryShape,
    MealEntry,
    MealType,
)
from meal_tracker.domain.places import PlaceSnapshot
from meal_tracker.services.entries import EntryRepository

_TABLE = "meal_entries"


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for meal entries."""

    client: Client

    def list_entries(self, user_id: UUID, limit: int | None) -> list[MealEntry]:
        """Return entries newest first."""
        query = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("eaten_at", desc=True)
        )
        if limit:
            query = query.limit(limit)
        response = query.execute()
        return [_parse_entry(row) for row in response.data or []]

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return an entry by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def create_entry(self, user_id: UUID, draft: EntryDraft) -> MealEntry:
        """Insert an entry row and return the stored entry."""
        row: dict[str, object] = {
            "user_id": str(user_id),
            "place_id": str(draft.place.id),
            "place": place_snapshot_to_json(draft.place),
            "calories": draft.calories,
            "eaten_at": draft.eaten_at.isoformat(),
            "meal_type": draft.meal_type.value,
            "notes": draft.notes,
        }
        if draft.shape is EntryShape.SINGLE_ITEM:
            item = draft.items[0]
            row["meal_item_id"] = str(item.meal_item_id)
            row["meal_item"] = meal_snapshot_to_json(item.meal_item)
            row["items"] = None
        else:
            row["items"] = [entry_item_to_json(item) for item in draft.items]
        response = self.client.table(_TABLE).insert(row).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal entry")
        created = response.data[0]
        created_at = parse_timestamp(created.get("created_at"))
        return MealEntry(
            id=UUID(str(created["id"])),
            user_id=user_id,
            place_id=draft.place.id,
            place=draft.place,
            shape=draft.shape,
            items=draft.items,
            calories=draft.calories,
            eaten_at=draft.eaten_at,
            meal_type=draft.meal_type,
            notes=draft.notes,
            created_at=created_at,
            updated_at=parse_timestamp(created.get("updated_at"), default=created_at),
        )

    def update_entry(
        self, user_id: UUID, entry_id: UUID, changes: dict[str, object]
    ) -> None:
        """Write the given fields of an entry row."""
        row = _changes_to_row(changes)
        row["updated_at"] = datetime.now(tz=UTC).isoformat()
        self.client.table(_TABLE).update(row).eq("user_id", str(user_id)).eq(
            "id", str(entry_id)
        ).execute()

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry row."""
        self.client.table(_TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(entry_id)
        ).execute()


def _changes_to_row(changes: dict[str, object]) -> dict[str, object]:
    row: dict[str, object] = {}
    for key, value in changes.items():
        if key == "place" and isinstance(value, PlaceSnapshot):
            row["place_id"] = str(value.id)
            row["place"] = place_snapshot_to_json(value)
        elif key == "items":
            row["items"] = [entry_item_to_json(item) for item in value]
        elif key == "shape":
            if value is EntryShape.MULTI_ITEM:
                row["meal_item_id"] = None
                row["meal_item"] = None
        else:
            row[key] = serialize_value(value)
    return row


def _parse_entry(row: dict[str, object]) -> MealEntry:
    """Parse an entry row, normalizing legacy rows into one item line."""
    calories_raw = row.get("calories")
    calories = int(calories_raw) if isinstance(calories_raw, int | float) else None
    raw_items = row.get("items")
    if isinstance(raw_items, list) and raw_items:
        shape = EntryShape.MULTI_ITEM
        items = tuple(parse_entry_item(item) for item in raw_items)
    else:
        shape = EntryShape.SINGLE_ITEM
        meal_item = row.get("meal_item")
        items = (
            (
                EntryItem(
                    meal_item_id=UUID(str(row.get("meal_item_id") or meal_item["id"])),
                    meal_item=parse_meal_snapshot(meal_item),
                    calories=calories,
                    quantity=1,
                ),
            )
            if isinstance(meal_item, dict)
            else ()
        )
    place = parse_place_snapshot(row["place"])
    created_at = parse_timestamp(row.get("created_at"))
    return MealEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        place_id=UUID(str(row.get("place_id") or place.id)),
        place=place,
        shape=shape,
        items=items,
        calories=calories,
        eaten_at=parse_timestamp(row.get("eaten_at"), default=created_at),
        meal_type=MealType(str(row.get("meal_type") or MealType.SNACK)),
        notes=row.get("notes"),
        created_at=created_at,
        updated_at=parse_timestamp(row.get("updated_at"), default=created_at),
    )
