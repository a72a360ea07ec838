"""JSON response bodies to entity models.

Besides plain deserialization the translator:

- fills in ids the server left out, from the trailing segment of each
  entity's url, anywhere in the parsed graph;
- strips the single-key envelopes several endpoints wrap their lists in;
- flattens the nested stamp payload into a flat Stamp;
- flags a fetched spot as merged when the server answered with another id.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from spotfinder.errors import TranslationError
from spotfinder.models import (
    Address,
    FullCategory,
    FullSpot,
    FullUser,
    Identity,
    Item,
    ItemEvent,
    SimpleSpot,
    SpotEvent,
    SpotPhoto,
    Stamp,
    Trip,
    TripSummary,
    User,
    UserPhoto,
    VisitedSpot,
)

M = TypeVar("M", bound=BaseModel)


def id_from_url(url: str) -> Optional[int]:
    """``/spots/11888`` -> 11888. None when the last segment is not numeric."""
    segment = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return int(segment) if segment.isdigit() else None


def repair_ids(value: Any) -> Any:
    """Populate missing ids on every Identity reachable from ``value``."""
    if isinstance(value, BaseModel):
        if isinstance(value, Identity) and value.id is None:
            derived = id_from_url(value.url)
            if derived is None:
                raise TranslationError(f"{type(value).__name__} has no id and no numeric url: {value.url!r}")
            value.id = derived
        for name in type(value).model_fields:
            repair_ids(getattr(value, name))
    elif isinstance(value, (list, tuple)):
        for item in value:
            repair_ids(item)
    elif isinstance(value, dict):
        for item in value.values():
            repair_ids(item)
    return value


class _SpotsEnvelope(BaseModel):
    spots: List[SimpleSpot]


class _ItemsEnvelope(BaseModel):
    items: List[Item]


class _TripsEnvelope(BaseModel):
    trips: List[TripSummary]


class _TopSpotsEnvelope(BaseModel):
    top_spots: List[VisitedSpot]


class _UsersEnvelope(BaseModel):
    users: List[User]


class _SpotEventsEnvelope(BaseModel):
    activity: List[SpotEvent]


class _SpotPhotosEnvelope(BaseModel):
    activity: List[SpotPhoto]


class _UserPhotosEnvelope(BaseModel):
    activity: List[UserPhoto]


class _ItemEventsEnvelope(BaseModel):
    events: List[ItemEvent]


class _StampSpot(BaseModel):
    name: str = ""
    url: str = ""
    image_url: Optional[str] = None
    address: Optional[Address] = None


class _WireStamp(BaseModel):
    checkins_count: int = 0
    first_checkin_at: Optional[datetime] = None
    last_checkin_at: Optional[datetime] = None
    spot: _StampSpot


class _StampsEnvelope(BaseModel):
    stamps: List[_WireStamp]


class ResponseTranslator:
    def _parse(self, body: str, model: Type[M]) -> M:
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            raise TranslationError(f"Cannot translate response into {model.__name__}: {exc}") from exc

    def _entity(self, body: str, model: Type[M]) -> M:
        return repair_ids(self._parse(body, model))

    def _unwrap(self, body: str, envelope: Type[BaseModel], field: str) -> list:
        return repair_ids(getattr(self._parse(body, envelope), field))

    def simple_spots(self, body: str) -> List[SimpleSpot]:
        return self._unwrap(body, _SpotsEnvelope, "spots")

    def spot(self, body: str, requested_id: int) -> FullSpot:
        spot = self._entity(body, FullSpot)
        spot.merged = spot.id != requested_id
        return spot

    def categories(self, body: str) -> List[FullCategory]:
        """The listing is an unnamed root category; its children are the answer."""
        return repair_ids(self._parse(body, FullCategory).spot_categories)

    def category(self, body: str) -> FullCategory:
        return self._entity(body, FullCategory)

    def items(self, body: str) -> List[Item]:
        return self._unwrap(body, _ItemsEnvelope, "items")

    def item(self, body: str) -> Item:
        return self._entity(body, Item)

    def item_events(self, body: str) -> List[ItemEvent]:
        return self._unwrap(body, _ItemEventsEnvelope, "events")

    def trip(self, body: str) -> Trip:
        return self._entity(body, Trip)

    def trip_summaries(self, body: str) -> List[TripSummary]:
        return self._unwrap(body, _TripsEnvelope, "trips")

    def user(self, body: str) -> FullUser:
        return self._entity(body, FullUser)

    def users(self, body: str) -> List[User]:
        return self._unwrap(body, _UsersEnvelope, "users")

    def user_photos(self, body: str) -> List[UserPhoto]:
        return self._unwrap(body, _UserPhotosEnvelope, "activity")

    def visited_spots(self, body: str) -> List[VisitedSpot]:
        return self._unwrap(body, _TopSpotsEnvelope, "top_spots")

    def spot_events(self, body: str) -> List[SpotEvent]:
        return self._unwrap(body, _SpotEventsEnvelope, "activity")

    def spot_photos(self, body: str) -> List[SpotPhoto]:
        return self._unwrap(body, _SpotPhotosEnvelope, "activity")

    def stamps(self, body: str) -> List[Stamp]:
        wire_stamps = self._parse(body, _StampsEnvelope).stamps
        stamps = [
            Stamp(
                url=ws.spot.url,
                name=ws.spot.name,
                image_url=ws.spot.image_url,
                address=ws.spot.address,
                checkins_count=ws.checkins_count,
                first_checkin_at=ws.first_checkin_at,
                last_checkin_at=ws.last_checkin_at,
            )
            for ws in wire_stamps
        ]
        return repair_ids(stamps)
