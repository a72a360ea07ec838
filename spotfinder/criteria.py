from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from spotfinder.models import Identity, Locatable, identity_id
from spotfinder.ordering import by_distance_from

DEFAULT_SPOT_LIMIT = 40

EntityRef = Union[int, Identity]


class PagingMode(Enum):
    SINGLE_REQUEST_ONLY = "single_request_only"
    PAGING_ALLOWED = "paging_allowed"


class ItemContext(Enum):
    VAULT = "vault"
    MISSING = "missing"
    PACK = "pack"


class StampContext(Enum):
    ALL = "all"
    VISITED = "visited"
    UNVISITED = "unvisited"


@dataclass(frozen=True)
class SearchCriteria:
    """An immutable spot search.

    Radius, limit and retries are stored as absolute values. A limit of 0 or
    None means the search is not capped. ``order_key`` sorts the results;
    when omitted they are ordered nearest-first from ``location``.
    """

    location: Locatable
    radius_m: int
    limit: Optional[int] = DEFAULT_SPOT_LIMIT
    featured: bool = False
    parent_category_id: Optional[int] = None
    checkins_user_id: Optional[int] = None
    spots_user_id: Optional[int] = None
    bookmarks_user_id: Optional[int] = None
    order_key: Optional[Callable[[Any], Any]] = None
    paging: PagingMode = PagingMode.SINGLE_REQUEST_ONLY
    retries: int = 0
    base_query: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.location is None:
            raise ValueError("Cannot build SearchCriteria without a location")
        if not self.radius_m:
            raise ValueError("Cannot build SearchCriteria without a radius")
        object.__setattr__(self, "radius_m", abs(int(self.radius_m)))
        if self.limit is not None:
            object.__setattr__(self, "limit", abs(int(self.limit)))
        object.__setattr__(self, "retries", abs(int(self.retries)))
        object.__setattr__(self, "base_query", self._render_query())

    @classmethod
    def builder(cls, location: Locatable, radius_m: int) -> SearchCriteriaBuilder:
        return SearchCriteriaBuilder(location, radius_m)

    @property
    def cap(self) -> Optional[int]:
        return self.limit or None

    @property
    def allows_paging(self) -> bool:
        return self.paging is PagingMode.PAGING_ALLOWED

    @property
    def sort_key(self) -> Callable[[Any], Any]:
        return self.order_key or by_distance_from(self.location)

    def query(self, offset: int = 0) -> str:
        return f"{self.base_query}&offset={offset}" if offset else self.base_query

    def _render_query(self) -> str:
        point = self.location.geo_point
        parts = [f"/spots?lat={point.latitude:f}&lng={point.longitude:f}&radius={self.radius_m}"]
        if self.featured:
            parts.append("&featured=1")
        if self.limit:
            parts.append(f"&limit={self.limit}")
        optional_ids = (
            ("category_id", self.parent_category_id),
            ("checkins_user_id", self.checkins_user_id),
            ("spots_user_id", self.spots_user_id),
            ("bookmarks_user_id", self.bookmarks_user_id),
        )
        for name, value in optional_ids:
            if value is not None:
                parts.append(f"&{name}={value}")
        return "".join(parts)


class SearchCriteriaBuilder:
    """Collects search options; ``build()`` validates and freezes them."""

    def __init__(self, location: Locatable, radius_m: int) -> None:
        self._options: dict = {"location": location, "radius_m": radius_m}

    def _set(self, **options: Any) -> SearchCriteriaBuilder:
        self._options.update(options)
        return self

    def location(self, location: Locatable) -> SearchCriteriaBuilder:
        return self._set(location=location)

    def radius(self, radius_m: int) -> SearchCriteriaBuilder:
        return self._set(radius_m=radius_m)

    def limit(self, limit: Optional[int]) -> SearchCriteriaBuilder:
        return self._set(limit=limit)

    def featured(self, featured: bool = True) -> SearchCriteriaBuilder:
        return self._set(featured=featured)

    def parent_category(self, category: Optional[EntityRef]) -> SearchCriteriaBuilder:
        return self._set(parent_category_id=None if category is None else identity_id(category))

    def visited_by(self, user: EntityRef) -> SearchCriteriaBuilder:
        return self._set(checkins_user_id=identity_id(user))

    def created_by(self, user: EntityRef) -> SearchCriteriaBuilder:
        return self._set(spots_user_id=identity_id(user))

    def bookmarked_by(self, user: EntityRef) -> SearchCriteriaBuilder:
        return self._set(bookmarks_user_id=identity_id(user))

    def order_by(self, key: Callable[[Any], Any]) -> SearchCriteriaBuilder:
        return self._set(order_key=key)

    def paging(self, paging: PagingMode) -> SearchCriteriaBuilder:
        return self._set(paging=paging)

    def retries(self, retries: int) -> SearchCriteriaBuilder:
        return self._set(retries=retries)

    def build(self) -> SearchCriteria:
        return SearchCriteria(**self._options)


@dataclass(frozen=True)
class StampCriteria:
    """Stamps of one user, addressed by numeric id or login."""

    user: Union[int, str, Identity]
    limit: Optional[int] = None
    context: StampContext = StampContext.ALL
    resource: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.user is None or self.user == "":
            raise ValueError("Cannot build StampCriteria without a user id or login")
        if self.limit is not None:
            object.__setattr__(self, "limit", abs(int(self.limit)))
        who = self.user if isinstance(self.user, str) else identity_id(self.user)
        params = []
        if self.limit:
            params.append(f"limit={self.limit}")
        if self.context is not StampContext.ALL:
            params.append(f"context={self.context.value}")
        query = f"?{'&'.join(params)}" if params else ""
        object.__setattr__(self, "resource", f"/users/{who}/stamps{query}")
