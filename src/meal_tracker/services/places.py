"""Services for managing places."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import ValidationError
from meal_tracker.domain.places import Place, PlaceType

_UPDATABLE_FIELDS = {"name", "type", "address", "is_home"}


class PlaceRepository(Protocol):
    """Persistence interface for places."""

    def list_places(self, user_id: UUID) -> list[Place]:
        """Return places ordered by usage count desc, then name asc."""

    def get_place(self, user_id: UUID, place_id: UUID) -> Place | None:
        """Return a place by id, if present."""

    def create_place(self, user_id: UUID, payload: dict[str, object]) -> Place:
        """Create a place with zero usage and return it."""

    def update_place(
        self, user_id: UUID, place_id: UUID, payload: dict[str, object]
    ) -> None:
        """Write the given fields and refresh ``updated_at``."""

    def delete_place(self, user_id: UUID, place_id: UUID) -> None:
        """Delete a place."""

    def increment_usage(self, user_id: UUID, place_id: UUID) -> None:
        """Atomically add one to the usage count."""


@dataclass
class PlaceService:
    """Application service for place operations."""

    repository: PlaceRepository

    def list_places(self, user_id: UUID, search_term: str | None = None) -> list[Place]:
        """List places, optionally filtered by a case-insensitive name match."""
        places = self.repository.list_places(user_id)
        if search_term:
            needle = search_term.lower()
            places = [place for place in places if needle in place.name.lower()]
        return places

    def get_place(self, user_id: UUID, place_id: UUID) -> Place | None:
        """Return a place by id, or None when it does not exist."""
        return self.repository.get_place(user_id, place_id)

    def create_place(
        self,
        user_id: UUID,
        name: str,
        place_type: PlaceType,
        *,
        is_home: bool = False,
        address: str | None = None,
    ) -> Place:
        """Validate and create a place."""
        payload = {
            "name": _clean_name(name),
            "type": _place_type(place_type),
            "is_home": is_home,
            "address": address or None,
        }
        return self.repository.create_place(user_id, payload)

    def update_place(
        self, user_id: UUID, place_id: UUID, fields: dict[str, object]
    ) -> None:
        """Apply a partial update to a place."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown place fields: {sorted(unknown)}")
        payload = dict(fields)
        if "name" in payload:
            payload["name"] = _clean_name(str(payload["name"]))
        if "type" in payload:
            payload["type"] = _place_type(payload["type"])
        self.repository.update_place(user_id, place_id, payload)

    def delete_place(self, user_id: UUID, place_id: UUID) -> None:
        """Delete a place; existing entries keep their snapshot."""
        self.repository.delete_place(user_id, place_id)

    def record_use(self, user_id: UUID, place_id: UUID) -> None:
        """Record that a place was referenced by an entry."""
        self.repository.increment_usage(user_id, place_id)


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned


def _place_type(value: object) -> PlaceType:
    try:
        return PlaceType(str(value))
    except ValueError as exc:
        raise ValidationError(f"Unknown place type: {value}") from exc
