"""Sort keys for spot lists."""
from __future__ import annotations

from typing import Callable

from spotfinder.models import Locatable, VisitedSpot


def by_distance_from(location: Locatable) -> Callable[[Locatable], float]:
    """Nearest first."""
    anchor = location.geo_point
    return lambda item: anchor.distance_m(item.geo_point)


def by_user_checkins(spot: VisitedSpot) -> int:
    """Most visited first."""
    return -spot.user_checkins_count
