from __future__ import annotations

from typing import Callable, Iterable, List, Optional, TypeVar, Union

import structlog

from spotfinder.config import Settings
from spotfinder.criteria import EntityRef, ItemContext, SearchCriteria, StampCriteria
from spotfinder.errors import NotFoundError
from spotfinder.models import (
    FullCategory,
    FullSpot,
    FullUser,
    Item,
    ItemEvent,
    Locatable,
    SimpleSpot,
    SpotEvent,
    SpotPhoto,
    Stamp,
    Trip,
    TripSummary,
    User,
    UserPhoto,
    VisitedSpot,
    identity_id,
)
from spotfinder.services import search
from spotfinder.services.auth import AnonymousAuthentication, Authentication
from spotfinder.services.handlers import ChainBuilder, Decorator, RequestHandler, RequestHeader
from spotfinder.services.rate_limit import ConcurrentRequestLimiter, RateLimiter, UnboundedRateLimiter
from spotfinder.services.transport import AiohttpTransport
from spotfinder.services.translator import ResponseTranslator

log = structlog.get_logger(__name__)

T = TypeVar("T")

UserRef = Union[int, str, EntityRef]


def _user_path(user: UserRef) -> str:
    who = user if isinstance(user, str) else identity_id(user)
    return f"/users/{who}"


class Client:
    """Entry point for every API operation.

    Each call takes a permit from the rate limiter, sends the resource through
    the handler chain with the authentication headers, translates the body
    and gives the permit back, whatever the outcome. Lookups of a single
    entity (or of a list belonging to one) return None when the server says
    the entity does not exist.
    """

    def __init__(
        self,
        handler: RequestHandler,
        *,
        authentication: Optional[Authentication] = None,
        rate_limiter: Optional[RateLimiter] = None,
        translator: Optional[ResponseTranslator] = None,
    ) -> None:
        self.handler = handler
        self.authentication = authentication or AnonymousAuthentication()
        self.rate_limiter = rate_limiter or UnboundedRateLimiter()
        self.translator = translator or ResponseTranslator()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        authentication: Optional[Authentication] = None,
        decorators: Iterable[Decorator] = (),
    ) -> Client:
        headers = [
            RequestHeader("User-Agent", settings.user_agent),
            RequestHeader("Accept", "application/json"),
        ]
        if settings.api_key:
            headers.append(RequestHeader(settings.api_key_header, settings.api_key))
        transport = AiohttpTransport(
            settings.api_host,
            settings.api_port,
            scheme=settings.api_scheme,
            timeout_s=settings.http_timeout_s,
            headers=headers,
        )
        builder = ChainBuilder(transport)
        for decorator in decorators:
            builder.wrap(decorator)
        chain = builder.build()
        limiter = ConcurrentRequestLimiter(
            settings.max_concurrent_requests,
            timeout_s=settings.rate_limit_timeout_s,
        )
        log.info(
            "client_configured",
            base_url=transport.base_url,
            max_concurrent_requests=limiter.max_concurrent_requests,
            decorators=[d.name for d in chain.decorators],
        )
        return cls(chain, authentication=authentication, rate_limiter=limiter)

    def request(self, resource: str, translate: Callable[[str], T]) -> T:
        with self.rate_limiter.permit():
            body = self.handler.execute(resource, self.authentication.headers)
            return translate(body)

    def _lookup(self, resource: str, translate: Callable[[str], T]) -> Optional[T]:
        try:
            return self.request(resource, translate)
        except NotFoundError:
            log.debug("resource_not_found", resource=resource)
            return None

    # Spots

    def find_spots(self, criteria: SearchCriteria) -> List[SimpleSpot]:
        return search.find_spots(lambda resource: self.request(resource, self.translator.simple_spots), criteria)

    def find_spots_near(self, location: Locatable, radius_m: int) -> List[SimpleSpot]:
        return self.find_spots(SearchCriteria.builder(location, radius_m).build())

    def get_spot(self, spot: EntityRef) -> Optional[FullSpot]:
        spot_id = identity_id(spot)
        return self._lookup(f"/spots/{spot_id}", lambda body: self.translator.spot(body, spot_id))

    def get_spot_events(self, spot: EntityRef) -> Optional[List[SpotEvent]]:
        return self._lookup(f"/spots/{identity_id(spot)}/events", self.translator.spot_events)

    def get_spot_photos(self, spot: EntityRef) -> Optional[List[SpotPhoto]]:
        return self._lookup(f"/spots/{identity_id(spot)}/photos", self.translator.spot_photos)

    def get_items_at_spot(self, spot: EntityRef) -> Optional[List[Item]]:
        return self._lookup(f"/spots/{identity_id(spot)}/items", self.translator.items)

    # Categories

    def get_categories(self) -> List[FullCategory]:
        return self.request("/categories", self.translator.categories)

    def get_category(self, category: EntityRef) -> Optional[FullCategory]:
        return self._lookup(f"/categories/{identity_id(category)}", self.translator.category)

    # Users

    def get_user(self, user: UserRef) -> Optional[FullUser]:
        return self._lookup(_user_path(user), self.translator.user)

    def get_user_friends(self, user: UserRef) -> Optional[List[User]]:
        return self._lookup(f"{_user_path(user)}/friends", self.translator.users)

    def get_user_trips(self, user: UserRef) -> Optional[List[TripSummary]]:
        return self._lookup(f"{_user_path(user)}/trips", self.translator.trip_summaries)

    def get_user_photos(self, user: UserRef) -> Optional[List[UserPhoto]]:
        return self._lookup(f"{_user_path(user)}/photos", self.translator.user_photos)

    def get_top_spots(self, user: UserRef) -> Optional[List[VisitedSpot]]:
        return self._lookup(f"{_user_path(user)}/top_spots", self.translator.visited_spots)

    def get_items_for_user(self, user: UserRef, context: ItemContext = ItemContext.PACK) -> Optional[List[Item]]:
        return self._lookup(f"{_user_path(user)}/items?context={context.value}", self.translator.items)

    def get_stamps(self, criteria: StampCriteria) -> Optional[List[Stamp]]:
        return self._lookup(criteria.resource, self.translator.stamps)

    # Items

    def get_item(self, item: EntityRef) -> Optional[Item]:
        return self._lookup(f"/items/{identity_id(item)}", self.translator.item)

    def get_item_events(self, item: EntityRef) -> Optional[List[ItemEvent]]:
        return self._lookup(f"/items/{identity_id(item)}/events", self.translator.item_events)

    # Trips

    def get_trip(self, trip: EntityRef) -> Optional[Trip]:
        return self._lookup(f"/trips/{identity_id(trip)}", self.translator.trip)

    def get_trips(self) -> Optional[List[TripSummary]]:
        return self._lookup("/trips", self.translator.trip_summaries)
