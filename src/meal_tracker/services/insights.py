"""Insights service aggregating meal entries by local day."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from meal_tracker.domain.entries import MealEntry
from meal_tracker.domain.errors import ValidationError
from meal_tracker.domain.insights import (
    DailySummary,
    InsightsSummary,
    LocationBreakdown,
    PeriodStats,
    PlaceCount,
)
from meal_tracker.domain.places import PlaceSnapshot
from meal_tracker.services.entries import EntryRepository, filter_entries

TOP_PLACES_LIMIT = 5


@dataclass
class _DayBucket:
    day: date
    total_calories: int = 0
    meal_count: int = 0
    home_count: int = 0
    out_count: int = 0

    def freeze(self) -> DailySummary:
        return DailySummary(
            day=self.day,
            total_calories=self.total_calories,
            meal_count=self.meal_count,
            home_count=self.home_count,
            out_count=self.out_count,
        )


@dataclass
class InsightsService:
    """Service for computing insights in the caller's timezone."""

    repository: EntryRepository

    def compute_insights(
        self,
        user_id: UUID,
        days: int,
        timezone_name: str = "UTC",
        now: datetime | None = None,
    ) -> InsightsSummary:
        """Summarize the last ``days`` local days, today included."""
        if days < 1:
            raise ValidationError("days must be at least 1")
        tz = ZoneInfo(timezone_name)
        today = (now or datetime.now(tz=UTC)).astimezone(tz).date()
        first_day = today - timedelta(days=days - 1)
        start = datetime.combine(first_day, time.min, tzinfo=tz)
        entries = filter_entries(
            self.repository.list_entries(user_id, None), start=start
        )
        return aggregate_entries(entries, first_day, days, tz, today)


def aggregate_entries(
    entries: list[MealEntry],
    first_day: date,
    days: int,
    tz: ZoneInfo,
    today: date,
) -> InsightsSummary:
    """Aggregate already-windowed entries into an insights summary."""
    buckets: dict[str, _DayBucket] = {}
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        buckets[day.isoformat()] = _DayBucket(day=day)

    for entry in entries:
        bucket = buckets.get(entry.eaten_at.astimezone(tz).date().isoformat())
        if bucket is None:
            continue
        bucket.meal_count += 1
        bucket.total_calories += entry.calories or 0
        if entry.place.is_home:
            bucket.home_count += 1
        else:
            bucket.out_count += 1

    today_bucket = buckets.get(today.isoformat(), _DayBucket(day=today))
    home = sum(1 for entry in entries if entry.place.is_home)
    period_calories = sum(entry.calories or 0 for entry in entries)
    return InsightsSummary(
        today_summary=today_bucket.freeze(),
        daily_data=[bucket.freeze() for bucket in buckets.values()],
        location_breakdown=LocationBreakdown(
            home=home, out=len(entries) - home, total=len(entries)
        ),
        top_places=_top_places(entries),
        period_stats=PeriodStats(
            total_calories=period_calories,
            total_meals=len(entries),
            avg_calories_per_day=period_calories // days if entries else 0,
        ),
    )


def _top_places(entries: list[MealEntry]) -> list[PlaceCount]:
    """Rank places by entry count; ties go to name, then id."""
    places: dict[UUID, PlaceSnapshot] = {}
    counts: dict[UUID, int] = {}
    for entry in entries:
        place_id = entry.place.id
        places.setdefault(place_id, entry.place)
        counts[place_id] = counts.get(place_id, 0) + 1
    ranked = sorted(
        counts,
        key=lambda place_id: (
            -counts[place_id],
            places[place_id].name.casefold(),
            str(place_id),
        ),
    )
    return [
        PlaceCount(place=places[place_id], count=counts[place_id])
        for place_id in ranked[:TOP_PLACES_LIMIT]
    ]
