"""Row conversion helpers shared by the Supabase repositories."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from meal_tracker.domain.entries import EntryItem
from meal_tracker.domain.meals import MealCategory, MealItemSnapshot
from meal_tracker.domain.places import PlaceSnapshot, PlaceType


def parse_timestamp(value: object, default: datetime | None = None) -> datetime:
    """Parse an ISO timestamp column.

    Missing values fall back to ``default`` or the client clock, for rows
    whose server timestamp has not been echoed back yet.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
    else:
        return default or datetime.now(tz=UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def serialize_value(value: object) -> object:
    """Convert a domain value to a JSON-compatible column value."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, PlaceSnapshot):
        return place_snapshot_to_json(value)
    if isinstance(value, MealItemSnapshot):
        return meal_snapshot_to_json(value)
    return value


def serialize_payload(payload: dict[str, object]) -> dict[str, object]:
    """Convert every value of a payload with :func:`serialize_value`."""
    return {key: serialize_value(value) for key, value in payload.items()}


def place_snapshot_to_json(place: PlaceSnapshot) -> dict[str, object]:
    return {
        "id": str(place.id),
        "name": place.name,
        "type": place.type.value,
        "is_home": place.is_home,
    }


def parse_place_snapshot(data: dict[str, object]) -> PlaceSnapshot:
    return PlaceSnapshot(
        id=UUID(str(data["id"])),
        name=str(data.get("name", "")),
        type=PlaceType(str(data.get("type") or PlaceType.OTHER)),
        is_home=bool(data.get("is_home", False)),
    )


def meal_snapshot_to_json(meal: MealItemSnapshot) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "name": meal.name,
        "default_calories": meal.default_calories,
        "category": meal.category.value,
    }


def parse_meal_snapshot(data: dict[str, object]) -> MealItemSnapshot:
    default_calories = data.get("default_calories")
    return MealItemSnapshot(
        id=UUID(str(data["id"])),
        name=str(data.get("name", "")),
        default_calories=int(default_calories)
        if isinstance(default_calories, int | float)
        else None,
        category=MealCategory(str(data.get("category") or MealCategory.OTHER)),
    )


def entry_item_to_json(item: EntryItem) -> dict[str, object]:
    return {
        "meal_item_id": str(item.meal_item_id),
        "meal_item": meal_snapshot_to_json(item.meal_item),
        "calories": item.calories,
        "quantity": item.quantity,
    }


def parse_entry_item(data: dict[str, object]) -> EntryItem:
    calories = data.get("calories")
    return EntryItem(
        meal_item_id=UUID(str(data["meal_item_id"])),
        meal_item=parse_meal_snapshot(data["meal_item"]),
        calories=int(calories) if isinstance(calories, int | float) else None,
        quantity=int(data.get("quantity") or 1),
    )
