"""Pydantic request models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from meal_tracker.domain.entries import MealType
from meal_tracker.domain.meals import MealCategory
from meal_tracker.domain.places import PlaceType


class PlaceCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    type: PlaceType
    is_home: bool = False
    address: str | None = None


class PlaceUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    type: PlaceType | None = None
    is_home: bool | None = None
    address: str | None = None


class MealCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    category: MealCategory
    default_calories: int | None = Field(default=None, ge=0)
    place_id: UUID | None = None


class MealUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    category: MealCategory | None = None
    default_calories: int | None = Field(default=None, ge=0)
    place_id: UUID | None = None


class EntryItemRequest(BaseModel):
    meal_item_id: UUID
    calories: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1)


class EntryCreateRequest(BaseModel):
    """Body for a legacy single-item entry."""

    place_id: UUID
    meal_item_id: UUID
    calories: int | None = Field(default=None, ge=0)
    meal_type: MealType | None = None
    notes: str | None = None
    eaten_at: datetime | None = None


class MultiItemEntryCreateRequest(BaseModel):
    place_id: UUID
    items: list[EntryItemRequest] = Field(min_length=1)
    meal_type: MealType | None = None
    notes: str | None = None
    eaten_at: datetime | None = None


class EntryUpdateRequest(BaseModel):
    place_id: UUID | None = None
    items: list[EntryItemRequest] | None = Field(default=None, min_length=1)
    meal_type: MealType | None = None
    notes: str | None = None
    eaten_at: datetime | None = None
    calories: int | None = Field(default=None, ge=0)
