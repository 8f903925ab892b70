"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from meal_tracker.adapters.supabase_entry_repository import SupabaseEntryRepository
from meal_tracker.adapters.supabase_meal_repository import (
    SupabaseMealItemRepository,
)
from meal_tracker.adapters.supabase_place_repository import SupabasePlaceRepository
from meal_tracker.config import Settings
from meal_tracker.services.entries import EntryService
from meal_tracker.services.insights import InsightsService
from meal_tracker.services.meals import MealItemService
from meal_tracker.services.places import PlaceService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    place_service: PlaceService
    meal_service: MealItemService
    entry_service: EntryService
    insights_service: InsightsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    place_service = PlaceService(SupabasePlaceRepository(supabase_client))
    meal_service = MealItemService(SupabaseMealItemRepository(supabase_client))
    entry_repository = SupabaseEntryRepository(supabase_client)
    entry_service = EntryService(
        repository=entry_repository,
        place_service=place_service,
        meal_service=meal_service,
    )
    insights_service = InsightsService(entry_repository)

    return AppContainer(
        settings=resolved_settings,
        place_service=place_service,
        meal_service=meal_service,
        entry_service=entry_service,
        insights_service=insights_service,
    )
