"""Meal entry composition service."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from meal_tracker.domain.entries import (
    EntryDraft,
    EntryItem,
    EntryShape,
    MealEntry,
    MealType,
    infer_meal_type,
    total_calories,
)
from meal_tracker.domain.errors import ValidationError
from meal_tracker.domain.meals import MealItem, MealItemSnapshot
from meal_tracker.domain.places import Place, PlaceSnapshot
from meal_tracker.services.meals import MealItemService
from meal_tracker.services.places import PlaceService

_UPDATABLE_FIELDS = {"place", "items", "meal_type", "notes", "eaten_at", "calories"}

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for meal entries."""

    def list_entries(self, user_id: UUID, limit: int | None) -> list[MealEntry]:
        """Return entries ordered by ``eaten_at`` desc."""

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return an entry by id, if present."""

    def create_entry(self, user_id: UUID, draft: EntryDraft) -> MealEntry:
        """Persist a composed entry and return it with id and timestamps."""

    def update_entry(
        self, user_id: UUID, entry_id: UUID, changes: dict[str, object]
    ) -> None:
        """Write only the given fields and refresh ``updated_at``."""

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry."""


@dataclass(frozen=True)
class EntryItemInput:
    """A selected meal item with optional calorie override."""

    meal_item: MealItem | MealItemSnapshot
    calories: int | None = None
    quantity: int = 1


@dataclass
class EntryService:
    """Service that composes, stores and edits meal entries."""

    repository: EntryRepository
    place_service: PlaceService
    meal_service: MealItemService

    def list_entries(
        self,
        user_id: UUID,
        limit: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MealEntry]:
        """List entries newest first, optionally bounded by an inclusive range."""
        entries = self.repository.list_entries(user_id, limit)
        return filter_entries(entries, start=start, end=end)

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return an entry by id, or None when it was deleted or never existed."""
        return self.repository.get_entry(user_id, entry_id)

    async def create_multi_item_entry(  # noqa: PLR0913
        self,
        user_id: UUID,
        place: Place | PlaceSnapshot,
        items: Sequence[EntryItemInput],
        meal_type: MealType,
        notes: str | None = None,
        eaten_at: datetime | None = None,
    ) -> MealEntry:
        """Compose and persist an entry with one or more item lines."""
        lines = _build_lines(items)
        draft = EntryDraft(
            place=_place_snapshot(place),
            shape=EntryShape.MULTI_ITEM,
            items=lines,
            calories=total_calories(lines),
            eaten_at=_resolve_eaten_at(eaten_at),
            meal_type=_meal_type(meal_type),
            notes=notes or None,
        )
        entry = self.repository.create_entry(user_id, draft)
        _logger.info(
            "Created entry %s with %s items (calories=%s)",
            entry.id,
            len(lines),
            entry.calories,
        )
        await self._record_usage(
            user_id, draft.place.id, [line.meal_item_id for line in lines]
        )
        return entry

    async def create_entry(  # noqa: PLR0913
        self,
        user_id: UUID,
        place: Place | PlaceSnapshot,
        meal_item: MealItem | MealItemSnapshot,
        meal_type: MealType,
        calories: int | None = None,
        notes: str | None = None,
        eaten_at: datetime | None = None,
    ) -> MealEntry:
        """Compose and persist a legacy single-item entry."""
        lines = _build_lines([EntryItemInput(meal_item=meal_item, calories=calories)])
        total = total_calories(lines)
        # Single-item rows only store the entry total, so the line carries it.
        lines = (replace(lines[0], calories=total),)
        draft = EntryDraft(
            place=_place_snapshot(place),
            shape=EntryShape.SINGLE_ITEM,
            items=lines,
            calories=total,
            eaten_at=_resolve_eaten_at(eaten_at),
            meal_type=_meal_type(meal_type),
            notes=notes or None,
        )
        entry = self.repository.create_entry(user_id, draft)
        _logger.info(
            "Created single-item entry %s (calories=%s)", entry.id, entry.calories
        )
        await self._record_usage(user_id, draft.place.id, [lines[0].meal_item_id])
        return entry

    async def update_entry(
        self, user_id: UUID, entry_id: UUID, fields: dict[str, object]
    ) -> None:
        """Blind-write the supplied fields of an entry.

        Supplying ``items`` recomputes the total and turns the entry into a
        multi-item entry. A bare ``calories`` value is stored as given.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown entry fields: {sorted(unknown)}")

        changes: dict[str, object] = {}
        place_id: UUID | None = None
        meal_ids: list[UUID] = []
        if "place" in fields:
            snapshot = _place_snapshot(fields["place"])
            changes["place"] = snapshot
            place_id = snapshot.id
        if "items" in fields:
            lines = _build_lines(fields["items"])
            changes["shape"] = EntryShape.MULTI_ITEM
            changes["items"] = lines
            changes["calories"] = total_calories(lines)
            meal_ids = [line.meal_item_id for line in lines]
        elif "calories" in fields:
            changes["calories"] = _clean_calories(fields["calories"])
        if "meal_type" in fields:
            changes["meal_type"] = _meal_type(fields["meal_type"])
        if "notes" in fields:
            changes["notes"] = fields["notes"] or None
        if "eaten_at" in fields:
            eaten_at = fields["eaten_at"]
            if not isinstance(eaten_at, datetime):
                raise ValidationError("eaten_at must be a datetime")
            changes["eaten_at"] = _resolve_eaten_at(eaten_at)

        self.repository.update_entry(user_id, entry_id, changes)
        _logger.info("Updated entry %s fields=%s", entry_id, sorted(changes))
        if place_id is not None or meal_ids:
            await self._record_usage(user_id, place_id, meal_ids)

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry; usage counts are left untouched."""
        self.repository.delete_entry(user_id, entry_id)
        _logger.info("Deleted entry %s", entry_id)

    async def relog_entry(
        self,
        user_id: UUID,
        entry_id: UUID,
        timezone_name: str = "UTC",
        now: datetime | None = None,
    ) -> MealEntry | None:
        """Log an existing entry again at the current time."""
        source = self.repository.get_entry(user_id, entry_id)
        if source is None:
            return None
        if not source.items:
            raise ValidationError(f"Entry {entry_id} has no meal items to re-log")
        moment = now or datetime.now(tz=UTC)
        meal_type = infer_meal_type(moment.astimezone(ZoneInfo(timezone_name)))
        if source.shape is EntryShape.MULTI_ITEM:
            return await self.create_multi_item_entry(
                user_id,
                place=source.place,
                items=[
                    EntryItemInput(
                        meal_item=item.meal_item,
                        calories=item.calories,
                        quantity=item.quantity,
                    )
                    for item in source.items
                ],
                meal_type=meal_type,
                eaten_at=moment,
            )
        return await self.create_entry(
            user_id,
            place=source.place,
            meal_item=source.items[0].meal_item,
            meal_type=meal_type,
            calories=source.calories,
            eaten_at=moment,
        )

    async def _record_usage(
        self, user_id: UUID, place_id: UUID | None, meal_ids: Iterable[UUID]
    ) -> None:
        """Increment usage counters concurrently; failures are only logged."""
        calls = []
        if place_id is not None:
            calls.append(
                asyncio.to_thread(self.place_service.record_use, user_id, place_id)
            )
        calls.extend(
            asyncio.to_thread(self.meal_service.record_use, user_id, meal_id)
            for meal_id in meal_ids
        )
        results = await asyncio.gather(*calls, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                _logger.warning(
                    "Usage increment failed: %s",
                    result,
                    extra={"user_id": str(user_id)},
                )
            elif isinstance(result, BaseException):
                raise result


def filter_entries(
    entries: list[MealEntry],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[MealEntry]:
    """Keep entries eaten within ``[start, end]``."""
    filtered = entries
    if start is not None:
        filtered = [entry for entry in filtered if entry.eaten_at >= start]
    if end is not None:
        filtered = [entry for entry in filtered if entry.eaten_at <= end]
    return filtered


def _build_lines(items: object) -> tuple[EntryItem, ...]:
    if not isinstance(items, Sequence) or not items:
        raise ValidationError("At least one meal item is required")
    lines = []
    for item in items:
        if not isinstance(item, EntryItemInput):
            raise ValidationError("Items must be EntryItemInput values")
        if item.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        snapshot = _meal_snapshot(item.meal_item)
        lines.append(
            EntryItem(
                meal_item_id=snapshot.id,
                meal_item=snapshot,
                calories=_clean_calories(item.calories),
                quantity=item.quantity,
            )
        )
    return tuple(lines)


def _place_snapshot(place: object) -> PlaceSnapshot:
    if isinstance(place, Place):
        return place.snapshot()
    if isinstance(place, PlaceSnapshot):
        return place
    raise ValidationError("A place is required")


def _meal_snapshot(meal_item: object) -> MealItemSnapshot:
    if isinstance(meal_item, MealItem):
        return meal_item.snapshot()
    if isinstance(meal_item, MealItemSnapshot):
        return meal_item
    raise ValidationError("A meal item is required")


def _meal_type(value: object) -> MealType:
    try:
        return MealType(str(value))
    except ValueError as exc:
        raise ValidationError(f"Unknown meal type: {value}") from exc


def _clean_calories(value: object) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError("Calories must be an integer")
    if value < 0:
        raise ValidationError("Calories cannot be negative")
    return value


def _resolve_eaten_at(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(tz=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
