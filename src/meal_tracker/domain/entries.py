"""Domain models for meal entries."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from meal_tracker.domain.meals import MealItemSnapshot
from meal_tracker.domain.places import PlaceSnapshot

BREAKFAST_START_HOUR = 5
LUNCH_START_HOUR = 11
SNACK_START_HOUR = 15
DINNER_START_HOUR = 18


class MealType(StrEnum):
    """Which meal of the day an entry represents."""

    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"


class EntryShape(StrEnum):
    """Stored layout of an entry."""

    SINGLE_ITEM = "SINGLE_ITEM"
    MULTI_ITEM = "MULTI_ITEM"


@dataclass(frozen=True)
class EntryItem:
    """One line of a meal entry."""

    meal_item_id: UUID
    meal_item: MealItemSnapshot
    calories: int | None
    quantity: int = 1

    @property
    def unit_calories(self) -> int:
        """Calories for a single unit, falling back to the item default."""
        if self.calories is not None:
            return self.calories
        return self.meal_item.default_calories or 0

    @property
    def line_calories(self) -> int:
        """Calories for the whole line."""
        return self.unit_calories * self.quantity


@dataclass(frozen=True)
class EntryDraft:
    """A composed entry that has not been persisted yet."""

    place: PlaceSnapshot
    shape: EntryShape
    items: tuple[EntryItem, ...]
    calories: int | None
    eaten_at: datetime
    meal_type: MealType
    notes: str | None


@dataclass(frozen=True)
class MealEntry:
    """A logged meal.

    Legacy single-item rows are normalized into a one-line ``items`` tuple
    when read, so consumers can treat both shapes alike. ``calories`` is the
    total computed when the entry was written.
    """

    id: UUID
    user_id: UUID
    place_id: UUID
    place: PlaceSnapshot
    shape: EntryShape
    items: tuple[EntryItem, ...]
    calories: int | None
    eaten_at: datetime
    meal_type: MealType
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def meal_item_id(self) -> UUID | None:
        """Meal item id of a legacy single-item entry."""
        if self.shape is EntryShape.SINGLE_ITEM and self.items:
            return self.items[0].meal_item_id
        return None

    @property
    def meal_item(self) -> MealItemSnapshot | None:
        """Meal item snapshot of a legacy single-item entry."""
        if self.shape is EntryShape.SINGLE_ITEM and self.items:
            return self.items[0].meal_item
        return None


@dataclass(frozen=True)
class EntryLine:
    """Display line for an entry item."""

    name: str
    calories: int
    quantity: int


def entry_lines(entry: MealEntry) -> list[EntryLine]:
    """Return display lines with per-line calories for an entry."""
    if entry.shape is EntryShape.SINGLE_ITEM:
        item = entry.items[0] if entry.items else None
        if item is None:
            return []
        calories = entry.calories
        if calories is None:
            calories = item.meal_item.default_calories or 0
        return [EntryLine(name=item.meal_item.name, calories=calories, quantity=1)]
    return [
        EntryLine(
            name=item.meal_item.name,
            calories=item.line_calories,
            quantity=item.quantity,
        )
        for item in entry.items
    ]


def total_calories(items: list[EntryItem] | tuple[EntryItem, ...]) -> int | None:
    """Sum line calories; a zero total is reported as unknown."""
    total = sum(item.line_calories for item in items)
    return total or None


def infer_meal_type(moment: datetime) -> MealType:
    """Guess the meal type from the local hour of ``moment``."""
    hour = moment.hour
    if BREAKFAST_START_HOUR <= hour < LUNCH_START_HOUR:
        return MealType.BREAKFAST
    if LUNCH_START_HOUR <= hour < SNACK_START_HOUR:
        return MealType.LUNCH
    if SNACK_START_HOUR <= hour < DINNER_START_HOUR:
        return MealType.SNACK
    return MealType.DINNER
