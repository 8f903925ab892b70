"""JSON serialization of domain objects for API responses."""

from meal_tracker.domain.entries import MealEntry, entry_lines
from meal_tracker.domain.insights import DailySummary, InsightsSummary
from meal_tracker.domain.meals import MealItem, MealItemSnapshot
from meal_tracker.domain.places import Place, PlaceSnapshot


def serialize_place(place: Place) -> dict[str, object]:
    return {
        "id": str(place.id),
        "name": place.name,
        "type": place.type.value,
        "address": place.address,
        "is_home": place.is_home,
        "usage_count": place.usage_count,
        "created_at": place.created_at.isoformat(),
        "updated_at": place.updated_at.isoformat(),
    }


def serialize_meal(meal: MealItem) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "name": meal.name,
        "default_calories": meal.default_calories,
        "category": meal.category.value,
        "usage_count": meal.usage_count,
        "place_id": str(meal.place_id) if meal.place_id else None,
        "created_at": meal.created_at.isoformat(),
        "updated_at": meal.updated_at.isoformat(),
    }


def serialize_entry(entry: MealEntry) -> dict[str, object]:
    """Serialize an entry, including display lines for both shapes."""
    return {
        "id": str(entry.id),
        "place_id": str(entry.place_id),
        "place": _serialize_place_snapshot(entry.place),
        "shape": entry.shape.value,
        "items": [
            {
                "meal_item_id": str(item.meal_item_id),
                "meal_item": _serialize_meal_snapshot(item.meal_item),
                "calories": item.calories,
                "quantity": item.quantity,
            }
            for item in entry.items
        ],
        "meal_item_id": str(entry.meal_item_id) if entry.meal_item_id else None,
        "meal_item": _serialize_meal_snapshot(entry.meal_item)
        if entry.meal_item
        else None,
        "lines": [
            {"name": line.name, "calories": line.calories, "quantity": line.quantity}
            for line in entry_lines(entry)
        ],
        "calories": entry.calories,
        "eaten_at": entry.eaten_at.isoformat(),
        "meal_type": entry.meal_type.value,
        "notes": entry.notes,
        "created_at": entry.created_at.isoformat(),
        "updated_at": entry.updated_at.isoformat(),
    }


def serialize_insights(summary: InsightsSummary) -> dict[str, object]:
    return {
        "today_summary": _serialize_day(summary.today_summary),
        "daily_data": [_serialize_day(day) for day in summary.daily_data],
        "location_breakdown": {
            "home": summary.location_breakdown.home,
            "out": summary.location_breakdown.out,
            "total": summary.location_breakdown.total,
        },
        "top_places": [
            {"place": _serialize_place_snapshot(item.place), "count": item.count}
            for item in summary.top_places
        ],
        "period_stats": {
            "total_calories": summary.period_stats.total_calories,
            "total_meals": summary.period_stats.total_meals,
            "avg_calories_per_day": summary.period_stats.avg_calories_per_day,
        },
    }


def _serialize_day(day: DailySummary) -> dict[str, object]:
    return {
        "date": day.date_key,
        "total_calories": day.total_calories,
        "meal_count": day.meal_count,
        "home_count": day.home_count,
        "out_count": day.out_count,
    }


def _serialize_place_snapshot(place: PlaceSnapshot) -> dict[str, object]:
    return {
        "id": str(place.id),
        "name": place.name,
        "type": place.type.value,
        "is_home": place.is_home,
    }


def _serialize_meal_snapshot(meal: MealItemSnapshot) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "name": meal.name,
        "default_calories": meal.default_calories,
        "category": meal.category.value,
    }
