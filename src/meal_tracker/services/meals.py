"""Services for managing the meal item catalog."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import ValidationError
from meal_tracker.domain.meals import MealCategory, MealItem

_UPDATABLE_FIELDS = {"name", "default_calories", "category", "place_id"}


class MealItemRepository(Protocol):
    """Persistence interface for meal items."""

    def list_meals(self, user_id: UUID) -> list[MealItem]:
        """Return meal items ordered by usage count desc, then name asc."""

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealItem | None:
        """Return a meal item by id, if present."""

    def create_meal(self, user_id: UUID, payload: dict[str, object]) -> MealItem:
        """Create a meal item with zero usage and return it."""

    def update_meal(
        self, user_id: UUID, meal_id: UUID, payload: dict[str, object]
    ) -> None:
        """Write the given fields and refresh ``updated_at``."""

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal item."""

    def increment_usage(self, user_id: UUID, meal_id: UUID) -> None:
        """Atomically add one to the usage count."""


@dataclass
class MealItemService:
    """Application service for meal item operations."""

    repository: MealItemRepository

    def list_meals(
        self,
        user_id: UUID,
        search_term: str | None = None,
        place_id: UUID | None = None,
    ) -> list[MealItem]:
        """List meal items.

        When ``place_id`` is given, items affiliated with that place come
        first; the storage ordering is kept within each group.
        """
        meals = self.repository.list_meals(user_id)
        if search_term:
            needle = search_term.lower()
            meals = [meal for meal in meals if needle in meal.name.lower()]
        if place_id is not None:
            meals = sorted(meals, key=lambda meal: meal.place_id != place_id)
        return meals

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealItem | None:
        """Return a meal item by id, or None when it does not exist."""
        return self.repository.get_meal(user_id, meal_id)

    def create_meal(
        self,
        user_id: UUID,
        name: str,
        category: MealCategory,
        *,
        default_calories: int | None = None,
        place_id: UUID | None = None,
    ) -> MealItem:
        """Validate and create a meal item."""
        payload = {
            "name": _clean_name(name),
            "category": _category(category),
            "default_calories": _clean_calories(default_calories),
            "place_id": place_id or None,
        }
        return self.repository.create_meal(user_id, payload)

    def update_meal(
        self, user_id: UUID, meal_id: UUID, fields: dict[str, object]
    ) -> None:
        """Apply a partial update to a meal item."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown meal fields: {sorted(unknown)}")
        payload = dict(fields)
        if "name" in payload:
            payload["name"] = _clean_name(str(payload["name"]))
        if "category" in payload:
            payload["category"] = _category(payload["category"])
        if "default_calories" in payload:
            payload["default_calories"] = _clean_calories(payload["default_calories"])
        self.repository.update_meal(user_id, meal_id, payload)

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal item; existing entries keep their snapshot."""
        self.repository.delete_meal(user_id, meal_id)

    def record_use(self, user_id: UUID, meal_id: UUID) -> None:
        """Record that a meal item was referenced by an entry."""
        self.repository.increment_usage(user_id, meal_id)


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned


def _clean_calories(value: object) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError("Calories must be an integer")
    if value < 0:
        raise ValidationError("Calories cannot be negative")
    return value or None


def _category(value: object) -> MealCategory:
    try:
        return MealCategory(str(value))
    except ValueError as exc:
        raise ValidationError(f"Unknown meal category: {value}") from exc
