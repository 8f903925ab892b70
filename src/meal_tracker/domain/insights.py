"""Domain models for insights."""

from dataclasses import dataclass
from datetime import date

from meal_tracker.domain.places import PlaceSnapshot


@dataclass(frozen=True)
class DailySummary:
    """Totals for one local calendar day."""

    day: date
    total_calories: int
    meal_count: int
    home_count: int
    out_count: int

    @property
    def date_key(self) -> str:
        """Return the ``YYYY-MM-DD`` bucket key."""
        return self.day.isoformat()


@dataclass(frozen=True)
class LocationBreakdown:
    """Home versus away counts."""

    home: int
    out: int
    total: int


@dataclass(frozen=True)
class PlaceCount:
    """How often a place appears in the window."""

    place: PlaceSnapshot
    count: int


@dataclass(frozen=True)
class PeriodStats:
    """Totals across the whole window."""

    total_calories: int
    total_meals: int
    avg_calories_per_day: int


@dataclass(frozen=True)
class InsightsSummary:
    """Aggregated insights for a lookback window."""

    today_summary: DailySummary
    daily_data: list[DailySummary]
    location_breakdown: LocationBreakdown
    top_places: list[PlaceCount]
    period_stats: PeriodStats
