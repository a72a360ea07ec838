from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from spotfinder.photos import Photo, parse_photos

EARTH_RADIUS_M = 6371000.0


class GeoPoint(BaseModel):
    """Immutable WGS84 coordinate. Out-of-range values fail validation."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    @property
    def geo_point(self) -> GeoPoint:
        return self

    def distance_m(self, other: GeoPoint) -> float:
        """Great-circle (haversine) distance in meters."""
        phi1 = math.radians(self.latitude)
        phi2 = math.radians(other.latitude)
        dphi = math.radians(other.latitude - self.latitude)
        dlambda = math.radians(other.longitude - self.longitude)

        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return EARTH_RADIUS_M * c


class Locatable(Protocol):
    """Anything that sits somewhere on the map."""

    @property
    def geo_point(self) -> GeoPoint: ...


class Identity(BaseModel):
    """Base of every entity addressable by id.

    Some endpoints send only ``url``; the translator fills ``id`` from it.
    Two identities of the same class are equal when their ids are.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    url: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity) or type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


class Address(BaseModel):
    street_address: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class User(Identity):
    first_name: str = ""
    last_name: str = ""
    image_url: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class SpotVisitor(User):
    checkins_count: int = 0


class Category(Identity):
    name: str = ""


class FullCategory(Category):
    description: Optional[str] = None
    image_url: Optional[str] = None
    small_image_url: Optional[str] = None
    spot_categories: List[FullCategory] = Field(default_factory=list)

    @property
    def subcategories(self) -> List[FullCategory]:
        return self.spot_categories


class Spot(Identity):
    name: str = ""
    image_url: Optional[str] = None


class LocatedSpot(Spot):
    lat: float
    lng: float
    strict_radius: bool = False
    radius_meters: int = 0

    @property
    def geo_point(self) -> GeoPoint:
        return GeoPoint(latitude=self.lat, longitude=self.lng)

    def can_check_in(self, location: Locatable) -> bool:
        return self.geo_point.distance_m(location.geo_point) <= self.radius_meters


class SimpleSpot(LocatedSpot):
    """What the search endpoint returns for each spot."""

    items_count: int = 0
    users_count: int = 0
    checkins_count: int = 0
    trending_level: int = 0
    address: Optional[Address] = None


class FullSpot(SimpleSpot):
    spot_categories: List[Category] = Field(default_factory=list)
    description: Optional[str] = None
    twitter_username: Optional[str] = None
    websites: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    creator: Optional[User] = None
    top_10: List[SpotVisitor] = Field(default_factory=list)
    founders: List[User] = Field(default_factory=list)
    max_items_count: int = 0
    # Set when the server answered with a different spot than the one asked for.
    merged: bool = False

    @property
    def categories(self) -> List[Category]:
        return self.spot_categories


class VisitedSpot(Spot):
    user_checkins_count: int = 0


class Stamp(Spot):
    address: Optional[Address] = None
    checkins_count: int = 0
    first_checkin_at: Optional[datetime] = None
    last_checkin_at: Optional[datetime] = None


class Item(Identity):
    issue_number: int = 0
    name: str = ""
    determiner: Optional[str] = None
    image_url: Optional[str] = None


class Event(BaseModel):
    type: Optional[str] = None
    created_at: Optional[datetime] = None
    message: Optional[str] = None


class UserEvent(Event):
    spot: Optional[Spot] = None


class SpotEvent(Event):
    user: Optional[User] = None


class ItemEvent(Event):
    user: Optional[User] = None
    spot: Optional[Spot] = None


class UserPhoto(UserEvent):
    photo_urls: Dict[str, str] = Field(default_factory=dict)

    @property
    def photos(self) -> List[Photo]:
        return parse_photos(self.photo_urls)


class SpotPhoto(SpotEvent):
    photo_urls: Dict[str, str] = Field(default_factory=dict)

    @property
    def photos(self) -> List[Photo]:
        return parse_photos(self.photo_urls)


class FullUser(User):
    bio: Optional[str] = None
    hometown: Optional[str] = None
    friends_count: int = 0
    is_friend: bool = Field(False, alias="_is_friend")
    items_count: int = 0
    pins_count: int = 0
    stamps_count: int = 0
    twitter_username: Optional[str] = None
    facebook_id: Optional[str] = None
    website: Optional[str] = None
    last_checkins: List[UserEvent] = Field(default_factory=list)

    @property
    def last_checkin(self) -> Optional[UserEvent]:
        return self.last_checkins[0] if self.last_checkins else None


class TripSummary(Identity):
    name: str = ""
    completed: bool = Field(False, alias="_completed")
    image_url: Optional[str] = None
    spots: List[Identity] = Field(default_factory=list)


class Trip(Identity):
    name: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    creator: Optional[User] = None
    completed: bool = Field(False, alias="_completed")
    completed_users_count: int = 0
    spots: List[LocatedSpot] = Field(default_factory=list)

    def closest_spot(self, location: Locatable) -> Optional[LocatedSpot]:
        if not self.spots:
            return None
        anchor = location.geo_point
        return min(self.spots, key=lambda s: anchor.distance_m(s.geo_point))

    def distance_to_closest_spot_m(self, location: Locatable) -> Optional[float]:
        closest = self.closest_spot(location)
        if closest is None:
            return None
        return location.geo_point.distance_m(closest.geo_point)


def identity_id(entity: Union[int, Identity]) -> int:
    """Accept either a bare id or an entity carrying one."""
    if isinstance(entity, Identity):
        if entity.id is None:
            raise ValueError(f"{type(entity).__name__} has no id")
        return entity.id
    return int(entity)
