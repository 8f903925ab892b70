"""Domain models for meal items."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class MealCategory(StrEnum):
    """Category of a meal item."""

    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"
    DRINK = "DRINK"
    DESSERT = "DESSERT"
    OTHER = "OTHER"


@dataclass(frozen=True)
class MealItemSnapshot:
    """Copy of a meal item embedded in a meal entry."""

    id: UUID
    name: str
    default_calories: int | None
    category: MealCategory


@dataclass(frozen=True)
class MealItem:
    """A reusable meal item in a user's catalog."""

    id: UUID
    user_id: UUID
    name: str
    default_calories: int | None
    category: MealCategory
    usage_count: int
    place_id: UUID | None
    created_at: datetime
    updated_at: datetime

    def snapshot(self) -> MealItemSnapshot:
        """Return the denormalized copy stored on entries."""
        return MealItemSnapshot(
            id=self.id,
            name=self.name,
            default_calories=self.default_calories,
            category=self.category,
        )
