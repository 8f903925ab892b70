"""Domain models for places."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class PlaceType(StrEnum):
    """Kind of place a meal was eaten at."""

    HOME = "HOME"
    RESTAURANT = "RESTAURANT"
    CAFE = "CAFE"
    FAST_FOOD = "FAST_FOOD"
    WORK = "WORK"
    OTHER = "OTHER"


@dataclass(frozen=True)
class PlaceSnapshot:
    """Copy of a place embedded in a meal entry."""

    id: UUID
    name: str
    type: PlaceType
    is_home: bool


@dataclass(frozen=True)
class Place:
    """A place owned by a user."""

    id: UUID
    user_id: UUID
    name: str
    type: PlaceType
    address: str | None
    is_home: bool
    usage_count: int
    created_at: datetime
    updated_at: datetime

    def snapshot(self) -> PlaceSnapshot:
        """Return the denormalized copy stored on entries."""
        return PlaceSnapshot(
            id=self.id, name=self.name, type=self.type, is_home=self.is_home
        )
