"""JSON API endpoints for places, meals, entries and insights."""

from datetime import UTC, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from pydantic import BaseModel

from meal_tracker.api.models import (
    EntryCreateRequest,
    EntryItemRequest,
    EntryUpdateRequest,
    MealCreateRequest,
    MealUpdateRequest,
    MultiItemEntryCreateRequest,
    PlaceCreateRequest,
    PlaceUpdateRequest,
)
from meal_tracker.api.serializers import (
    serialize_entry,
    serialize_insights,
    serialize_meal,
    serialize_place,
)
from meal_tracker.config import resolve_timezone
from meal_tracker.containers import AppContainer
from meal_tracker.domain.entries import MealType, infer_meal_type
from meal_tracker.domain.meals import MealItem
from meal_tracker.domain.places import Place
from meal_tracker.services.entries import EntryItemInput


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_token(
    x_api_token: str | None = Header(default=None),
    container: AppContainer = Depends(_get_container),
) -> None:
    """Ensure requests include the shared API token."""
    if not x_api_token or x_api_token != container.settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


async def current_user_id(x_user_id: str | None = Header(default=None)) -> UUID:
    """Return the user id supplied by the authentication layer."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user id"
        ) from exc


def _timezone(
    timezone: str | None = None,
    container: AppContainer = Depends(_get_container),
) -> str:
    return resolve_timezone(timezone, container.settings.default_timezone)


router = APIRouter(dependencies=[Depends(require_token)])


@router.get("/places")
async def list_places(
    search: str | None = None,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return places, most used first."""
    places = container.place_service.list_places(user_id, search)
    return {"places": [serialize_place(place) for place in places]}


@router.post("/places", status_code=status.HTTP_201_CREATED)
async def create_place(
    body: PlaceCreateRequest,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Create a place."""
    place = container.place_service.create_place(
        user_id,
        body.name,
        body.type,
        is_home=body.is_home,
        address=body.address,
    )
    return {"place": serialize_place(place)}


@router.get("/places/{place_id}")
async def get_place(
    place_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return a single place."""
    return {"place": serialize_place(_require_place(container, user_id, place_id))}


@router.patch("/places/{place_id}")
async def update_place(
    place_id: UUID,
    body: PlaceUpdateRequest,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Apply a partial update to a place."""
    container.place_service.update_place(
        user_id, place_id, _patch_fields(body, nullable={"address"})
    )
    return {"status": "ok"}


@router.delete("/places/{place_id}")
async def delete_place(
    place_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Delete a place."""
    container.place_service.delete_place(user_id, place_id)
    return {"status": "ok"}


@router.get("/meals")
async def list_meals(
    search: str | None = None,
    place_id: UUID | None = None,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return meal items, place-affiliated ones first when a place is given."""
    meals = container.meal_service.list_meals(
        user_id, search_term=search, place_id=place_id
    )
    return {"meals": [serialize_meal(meal) for meal in meals]}


@router.post("/meals", status_code=status.HTTP_201_CREATED)
async def create_meal(
    body: MealCreateRequest,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Create a meal item."""
    meal = container.meal_service.create_meal(
        user_id,
        body.name,
        body.category,
        default_calories=body.default_calories,
        place_id=body.place_id,
    )
    return {"meal": serialize_meal(meal)}


@router.get("/meals/{meal_id}")
async def get_meal(
    meal_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return a single meal item."""
    return {"meal": serialize_meal(_require_meal(container, user_id, meal_id))}


@router.patch("/meals/{meal_id}")
async def update_meal(
    meal_id: UUID,
    body: MealUpdateRequest,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Apply a partial update to a meal item."""
    container.meal_service.update_meal(
        user_id,
        meal_id,
        _patch_fields(body, nullable={"default_calories", "place_id"}),
    )
    return {"status": "ok"}


@router.delete("/meals/{meal_id}")
async def delete_meal(
    meal_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Delete a meal item."""
    container.meal_service.delete_meal(user_id, meal_id)
    return {"status": "ok"}


@router.get("/entries")
async def list_entries(  # noqa: PLR0913
    limit: int | None = Query(default=None, ge=1),
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return entries, newest first."""
    entries = container.entry_service.list_entries(
        user_id, limit=limit, start=_aware(start), end=_aware(end)
    )
    return {"entries": [serialize_entry(entry) for entry in entries]}


@router.get("/entries/{entry_id}")
async def get_entry(
    entry_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return a single entry."""
    entry = container.entry_service.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"entry": serialize_entry(entry)}


@router.post("/entries", status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryCreateRequest,
    user_id: UUID = Depends(current_user_id),
    timezone_name: str = Depends(_timezone),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Log a single-item entry."""
    place = _require_place(container, user_id, body.place_id)
    meal = _require_meal(container, user_id, body.meal_item_id)
    entry = await container.entry_service.create_entry(
        user_id,
        place=place,
        meal_item=meal,
        meal_type=_meal_type(body.meal_type, body.eaten_at, timezone_name),
        calories=body.calories,
        notes=body.notes,
        eaten_at=_aware(body.eaten_at),
    )
    return {"entry": serialize_entry(entry)}


@router.post("/entries/multi", status_code=status.HTTP_201_CREATED)
async def create_multi_item_entry(
    body: MultiItemEntryCreateRequest,
    user_id: UUID = Depends(current_user_id),
    timezone_name: str = Depends(_timezone),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Log an entry with several items."""
    place = _require_place(container, user_id, body.place_id)
    entry = await container.entry_service.create_multi_item_entry(
        user_id,
        place=place,
        items=_resolve_items(container, user_id, body.items),
        meal_type=_meal_type(body.meal_type, body.eaten_at, timezone_name),
        notes=body.notes,
        eaten_at=_aware(body.eaten_at),
    )
    return {"entry": serialize_entry(entry)}


@router.patch("/entries/{entry_id}")
async def update_entry(
    entry_id: UUID,
    body: EntryUpdateRequest,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Apply a partial update to an entry."""
    supplied = body.model_dump(exclude_unset=True)
    fields: dict[str, object] = {}
    if supplied.get("place_id") is not None:
        fields["place"] = _require_place(container, user_id, body.place_id)
    if supplied.get("items") is not None:
        fields["items"] = _resolve_items(container, user_id, body.items)
    for key in ("meal_type", "notes", "calories"):
        if key in supplied:
            fields[key] = supplied[key]
    if supplied.get("eaten_at") is not None:
        fields["eaten_at"] = _aware(body.eaten_at)
    await container.entry_service.update_entry(user_id, entry_id, fields)
    return {"status": "ok"}


@router.delete("/entries/{entry_id}")
async def delete_entry(
    entry_id: UUID,
    user_id: UUID = Depends(current_user_id),
    container: AppContainer = Depends(_get_container),
) -> dict[str, str]:
    """Delete an entry."""
    container.entry_service.delete_entry(user_id, entry_id)
    return {"status": "ok"}


@router.post("/entries/{entry_id}/relog", status_code=status.HTTP_201_CREATED)
async def relog_entry(
    entry_id: UUID,
    user_id: UUID = Depends(current_user_id),
    timezone_name: str = Depends(_timezone),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Log an existing entry again now."""
    entry = await container.entry_service.relog_entry(
        user_id, entry_id, timezone_name=timezone_name
    )
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"entry": serialize_entry(entry)}


@router.get("/insights")
async def insights(
    days: int = Query(default=7, ge=1),
    user_id: UUID = Depends(current_user_id),
    timezone_name: str = Depends(_timezone),
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return day-bucketed insights for the last ``days`` days."""
    if days > container.settings.insights_max_days:
        raise HTTPException(
            status_code=422,
            detail=f"days must be at most {container.settings.insights_max_days}",
        )
    summary = container.insights_service.compute_insights(
        user_id, days, timezone_name
    )
    return {"timezone": timezone_name, **serialize_insights(summary)}


def _require_place(container: AppContainer, user_id: UUID, place_id: UUID) -> Place:
    place = container.place_service.get_place(user_id, place_id)
    if place is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Place not found"
        )
    return place


def _require_meal(container: AppContainer, user_id: UUID, meal_id: UUID) -> MealItem:
    meal = container.meal_service.get_meal(user_id, meal_id)
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Meal item not found"
        )
    return meal


def _resolve_items(
    container: AppContainer, user_id: UUID, items: list[EntryItemRequest]
) -> list[EntryItemInput]:
    return [
        EntryItemInput(
            meal_item=_require_meal(container, user_id, item.meal_item_id),
            calories=item.calories,
            quantity=item.quantity,
        )
        for item in items
    ]


def _meal_type(
    meal_type: MealType | None, eaten_at: datetime | None, timezone_name: str
) -> MealType:
    if meal_type is not None:
        return meal_type
    moment = _aware(eaten_at) or datetime.now(tz=UTC)
    return infer_meal_type(moment.astimezone(ZoneInfo(timezone_name)))


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _patch_fields(body: BaseModel, nullable: set[str]) -> dict[str, object]:
    """Return supplied fields, dropping nulls for fields that cannot be cleared."""
    return {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key in nullable
    }
