"""Shared test fixtures."""

import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from meal_tracker.config import Settings
from meal_tracker.containers import AppContainer
from meal_tracker.domain.entries import EntryDraft, MealEntry
from meal_tracker.domain.meals import MealCategory, MealItem
from meal_tracker.domain.places import Place, PlaceType
from meal_tracker.services.entries import EntryRepository, EntryService
from meal_tracker.services.insights import InsightsService
from meal_tracker.services.meals import MealItemRepository, MealItemService
from meal_tracker.services.places import PlaceRepository, PlaceService


@dataclass
class InMemoryPlaceRepository(PlaceRepository):
    """In-memory place repository for tests."""

    places: dict[UUID, Place] = field(default_factory=dict)
    fail_increments: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def list_places(self, user_id: UUID) -> list[Place]:
        owned = [place for place in self.places.values() if place.user_id == user_id]
        return sorted(owned, key=lambda place: (-place.usage_count, place.name))

    def get_place(self, user_id: UUID, place_id: UUID) -> Place | None:
        place = self.places.get(place_id)
        if place is None or place.user_id != user_id:
            return None
        return place

    def create_place(self, user_id: UUID, payload: dict[str, object]) -> Place:
        now = datetime.now(tz=UTC)
        place = Place(
            id=uuid4(),
            user_id=user_id,
            name=str(payload["name"]),
            type=PlaceType(payload["type"]),
            address=payload.get("address"),
            is_home=bool(payload.get("is_home", False)),
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        self.places[place.id] = place
        return place

    def update_place(
        self, user_id: UUID, place_id: UUID, payload: dict[str, object]
    ) -> None:
        place = self.get_place(user_id, place_id)
        if place is None:
            return
        self.places[place_id] = replace(
            place, **payload, updated_at=datetime.now(tz=UTC)
        )

    def delete_place(self, user_id: UUID, place_id: UUID) -> None:
        if self.get_place(user_id, place_id) is not None:
            self.places.pop(place_id)

    def increment_usage(self, user_id: UUID, place_id: UUID) -> None:
        if self.fail_increments:
            raise RuntimeError("place increment failed")
        with self._lock:
            place = self.places[place_id]
            self.places[place_id] = replace(
                place,
                usage_count=place.usage_count + 1,
                updated_at=datetime.now(tz=UTC),
            )


@dataclass
class InMemoryMealItemRepository(MealItemRepository):
    """In-memory meal item repository for tests."""

    meals: dict[UUID, MealItem] = field(default_factory=dict)
    fail_increments: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def list_meals(self, user_id: UUID) -> list[MealItem]:
        owned = [meal for meal in self.meals.values() if meal.user_id == user_id]
        return sorted(owned, key=lambda meal: (-meal.usage_count, meal.name))

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealItem | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def create_meal(self, user_id: UUID, payload: dict[str, object]) -> MealItem:
        now = datetime.now(tz=UTC)
        meal = MealItem(
            id=uuid4(),
            user_id=user_id,
            name=str(payload["name"]),
            default_calories=payload.get("default_calories"),
            category=MealCategory(payload["category"]),
            usage_count=0,
            place_id=payload.get("place_id"),
            created_at=now,
            updated_at=now,
        )
        self.meals[meal.id] = meal
        return meal

    def update_meal(
        self, user_id: UUID, meal_id: UUID, payload: dict[str, object]
    ) -> None:
        meal = self.get_meal(user_id, meal_id)
        if meal is None:
            return
        self.meals[meal_id] = replace(meal, **payload, updated_at=datetime.now(tz=UTC))

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        if self.get_meal(user_id, meal_id) is not None:
            self.meals.pop(meal_id)

    def increment_usage(self, user_id: UUID, meal_id: UUID) -> None:
        if self.fail_increments:
            raise RuntimeError("meal increment failed")
        with self._lock:
            meal = self.meals[meal_id]
            self.meals[meal_id] = replace(
                meal,
                usage_count=meal.usage_count + 1,
                updated_at=datetime.now(tz=UTC),
            )


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    entries: dict[UUID, MealEntry] = field(default_factory=dict)
    writes: int = 0

    def list_entries(self, user_id: UUID, limit: int | None) -> list[MealEntry]:
        owned = [entry for entry in self.entries.values() if entry.user_id == user_id]
        ordered = sorted(owned, key=lambda entry: entry.eaten_at, reverse=True)
        return ordered[:limit] if limit else ordered

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        return entry

    def create_entry(self, user_id: UUID, draft: EntryDraft) -> MealEntry:
        self.writes += 1
        now = datetime.now(tz=UTC)
        entry = MealEntry(
            id=uuid4(),
            user_id=user_id,
            place_id=draft.place.id,
            place=draft.place,
            shape=draft.shape,
            items=draft.items,
            calories=draft.calories,
            eaten_at=draft.eaten_at,
            meal_type=draft.meal_type,
            notes=draft.notes,
            created_at=now,
            updated_at=now,
        )
        self.entries[entry.id] = entry
        return entry

    def update_entry(
        self, user_id: UUID, entry_id: UUID, changes: dict[str, object]
    ) -> None:
        self.writes += 1
        entry = self.get_entry(user_id, entry_id)
        if entry is None:
            return
        fields = dict(changes)
        if "place" in fields:
            fields["place_id"] = fields["place"].id
        self.entries[entry_id] = replace(
            entry, **fields, updated_at=datetime.now(tz=UTC)
        )

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        self.writes += 1
        if self.get_entry(user_id, entry_id) is not None:
            self.entries.pop(entry_id)

    def add(self, entry: MealEntry) -> MealEntry:
        """Store a prebuilt entry directly."""
        self.entries[entry.id] = entry
        return entry


@dataclass
class Services:
    """Services wired to in-memory repositories."""

    places: InMemoryPlaceRepository
    meals: InMemoryMealItemRepository
    entries: InMemoryEntryRepository
    place_service: PlaceService
    meal_service: MealItemService
    entry_service: EntryService
    insights_service: InsightsService


def build_services() -> Services:
    places = InMemoryPlaceRepository()
    meals = InMemoryMealItemRepository()
    entries = InMemoryEntryRepository()
    place_service = PlaceService(places)
    meal_service = MealItemService(meals)
    return Services(
        places=places,
        meals=meals,
        entries=entries,
        place_service=place_service,
        meal_service=meal_service,
        entry_service=EntryService(
            repository=entries,
            place_service=place_service,
            meal_service=meal_service,
        ),
        insights_service=InsightsService(entries),
    )


@pytest.fixture
def services() -> Services:
    return build_services()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        api_token="api-token",
        environment="test",
    )


@pytest.fixture
def container(settings: Settings, services: Services) -> AppContainer:
    return AppContainer(
        settings=settings,
        place_service=services.place_service,
        meal_service=services.meal_service,
        entry_service=services.entry_service,
        insights_service=services.insights_service,
    )
