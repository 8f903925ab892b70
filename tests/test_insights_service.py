"""Tests for insights service."""

from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from meal_tracker.domain.entries import EntryItem, EntryShape, MealEntry, MealType
from meal_tracker.domain.errors import ValidationError
from meal_tracker.domain.meals import MealCategory, MealItemSnapshot
from meal_tracker.domain.places import PlaceSnapshot, PlaceType
from meal_tracker.services.insights import InsightsService
from tests.conftest import InMemoryEntryRepository

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)

HOME = PlaceSnapshot(id=uuid4(), name="Home", type=PlaceType.HOME, is_home=True)
DINER = PlaceSnapshot(
    id=uuid4(), name="Diner", type=PlaceType.RESTAURANT, is_home=False
)


def _entry(
    user_id: UUID,
    place: PlaceSnapshot,
    eaten_at: datetime,
    calories: int | None,
) -> MealEntry:
    meal = MealItemSnapshot(
        id=uuid4(), name="Plate", default_calories=None, category=MealCategory.OTHER
    )
    return MealEntry(
        id=uuid4(),
        user_id=user_id,
        place_id=place.id,
        place=place,
        shape=EntryShape.MULTI_ITEM,
        items=(
            EntryItem(meal_item_id=meal.id, meal_item=meal, calories=calories),
        ),
        calories=calories,
        eaten_at=eaten_at,
        meal_type=MealType.LUNCH,
        notes=None,
        created_at=eaten_at,
        updated_at=eaten_at,
    )


def test_compute_insights_week_summary() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    repo.add(_entry(user_id, HOME, NOW - timedelta(hours=4), 500))
    repo.add(_entry(user_id, HOME, NOW - timedelta(hours=2), 300))
    repo.add(_entry(user_id, HOME, NOW - timedelta(hours=1), None))
    repo.add(_entry(user_id, DINER, NOW - timedelta(days=1), 800))

    summary = InsightsService(repo).compute_insights(user_id, days=7, now=NOW)

    assert summary.today_summary.day == date(2024, 3, 15)
    assert summary.today_summary.total_calories == 800
    assert summary.today_summary.meal_count == 3
    assert summary.today_summary.home_count == 3
    assert summary.today_summary.out_count == 0
    assert summary.location_breakdown.home == 3
    assert summary.location_breakdown.out == 1
    assert summary.location_breakdown.total == 4
    assert summary.period_stats.total_calories == 1600
    assert summary.period_stats.total_meals == 4
    assert summary.period_stats.avg_calories_per_day == 228
    assert [(item.place.name, item.count) for item in summary.top_places] == [
        ("Home", 3),
        ("Diner", 1),
    ]


def test_compute_insights_returns_contiguous_days() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    repo.add(_entry(user_id, DINER, NOW - timedelta(days=2), 400))

    summary = InsightsService(repo).compute_insights(user_id, days=7, now=NOW)

    keys = [day.date_key for day in summary.daily_data]
    assert keys == [
        "2024-03-09",
        "2024-03-10",
        "2024-03-11",
        "2024-03-12",
        "2024-03-13",
        "2024-03-14",
        "2024-03-15",
    ]
    by_key = {day.date_key: day for day in summary.daily_data}
    assert by_key["2024-03-13"].total_calories == 400
    assert by_key["2024-03-13"].out_count == 1
    assert by_key["2024-03-14"].meal_count == 0


def test_compute_insights_excludes_entries_before_window() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    repo.add(_entry(user_id, HOME, datetime(2024, 3, 8, 23, 59, tzinfo=UTC), 1000))
    repo.add(_entry(user_id, HOME, datetime(2024, 3, 9, 0, 0, tzinfo=UTC), 100))

    summary = InsightsService(repo).compute_insights(user_id, days=7, now=NOW)

    assert summary.period_stats.total_meals == 1
    assert summary.period_stats.total_calories == 100
    assert summary.daily_data[0].meal_count == 1


def test_compute_insights_buckets_by_local_day() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    now = datetime(2024, 3, 16, 3, 0, tzinfo=UTC)
    repo.add(_entry(user_id, HOME, datetime(2024, 3, 16, 2, 30, tzinfo=UTC), 650))

    local = InsightsService(repo).compute_insights(
        user_id, days=1, timezone_name="America/Los_Angeles", now=now
    )
    utc = InsightsService(repo).compute_insights(user_id, days=1, now=now)

    assert local.today_summary.date_key == "2024-03-15"
    assert local.today_summary.total_calories == 650
    assert utc.today_summary.date_key == "2024-03-16"
    assert utc.today_summary.total_calories == 650


def test_compute_insights_buckets_ahead_of_utc() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    now = datetime(2024, 3, 16, 3, 0, tzinfo=UTC)
    repo.add(_entry(user_id, HOME, datetime(2024, 3, 15, 8, 0, tzinfo=UTC), 300))

    summary = InsightsService(repo).compute_insights(
        user_id, days=2, timezone_name="Asia/Tokyo", now=now
    )

    by_key = {day.date_key: day for day in summary.daily_data}
    assert list(by_key) == ["2024-03-15", "2024-03-16"]
    assert by_key["2024-03-15"].total_calories == 300


def test_compute_insights_is_idempotent() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    repo.add(_entry(user_id, HOME, NOW - timedelta(hours=3), 450))
    repo.add(_entry(user_id, DINER, NOW - timedelta(days=3), 700))
    service = InsightsService(repo)

    first = service.compute_insights(user_id, days=14, now=NOW)
    second = service.compute_insights(user_id, days=14, now=NOW)

    assert first == second


def test_compute_insights_without_entries() -> None:
    summary = InsightsService(InMemoryEntryRepository()).compute_insights(
        uuid4(), days=30, now=NOW
    )

    assert len(summary.daily_data) == 30
    assert summary.today_summary.meal_count == 0
    assert summary.today_summary.date_key == "2024-03-15"
    assert summary.location_breakdown.total == 0
    assert summary.top_places == []
    assert summary.period_stats.avg_calories_per_day == 0


def test_top_places_limits_and_breaks_ties_by_name() -> None:
    user_id = uuid4()
    repo = InMemoryEntryRepository()
    names = ["Pho Spot", "bagel bar", "Cafe", "Deli", "Eatery", "Falafel"]
    places = [
        PlaceSnapshot(id=uuid4(), name=name, type=PlaceType.OTHER, is_home=False)
        for name in names
    ]
    repo.add(_entry(user_id, places[0], NOW - timedelta(hours=1), 100))
    repo.add(_entry(user_id, places[0], NOW - timedelta(hours=2), 100))
    for offset, place in enumerate(places[1:], start=3):
        repo.add(_entry(user_id, place, NOW - timedelta(hours=offset), 100))

    summary = InsightsService(repo).compute_insights(user_id, days=7, now=NOW)

    assert [item.place.name for item in summary.top_places] == [
        "Pho Spot",
        "bagel bar",
        "Cafe",
        "Deli",
        "Eatery",
    ]
    assert summary.top_places[0].count == 2


def test_compute_insights_ignores_other_users() -> None:
    repo = InMemoryEntryRepository()
    repo.add(_entry(uuid4(), HOME, NOW, 900))

    summary = InsightsService(repo).compute_insights(uuid4(), days=7, now=NOW)

    assert summary.period_stats.total_meals == 0


@pytest.mark.parametrize("days", [0, -3])
def test_compute_insights_rejects_non_positive_days(days: int) -> None:
    with pytest.raises(ValidationError):
        InsightsService(InMemoryEntryRepository()).compute_insights(
            uuid4(), days=days, now=NOW
        )
