from __future__ import annotations

from typing import Callable, Dict, List

import structlog

from spotfinder.criteria import SearchCriteria
from spotfinder.errors import NotFoundError
from spotfinder.models import SimpleSpot

log = structlog.get_logger(__name__)

FetchPage = Callable[[str], List[SimpleSpot]]


def find_spots(fetch_page: FetchPage, criteria: SearchCriteria) -> List[SimpleSpot]:
    """Run a (possibly paged) spot search.

    ``fetch_page`` takes a resource path and returns the spots on that page.
    Pages are requested with ``offset`` set to the number of distinct spots
    collected so far. Paging stops when the criteria forbid it, when the cap
    is reached, or when a page adds no spot not already seen (the server
    repeats itself at the end of the results, and may repeat spots within a
    page). A not-found answer to the first page means no results; on a later
    page it propagates like any other failure. The result is sorted by
    ``criteria.sort_key`` and cut to the cap.
    """
    if criteria is None:
        raise ValueError("No criteria provided")

    # Keyed by id; the first copy of a spot wins.
    found: Dict[int, SimpleSpot] = {}
    cap = criteria.cap

    while True:
        seen_before = len(found)
        resource = criteria.query(offset=seen_before)
        try:
            batch = fetch_page(resource)
        except NotFoundError:
            if seen_before == 0:
                log.info("spot_search_no_results", resource=resource)
                return []
            raise

        for spot in batch:
            found.setdefault(spot.id, spot)

        log.debug(
            "spot_search_page",
            offset=seen_before,
            batch_size=len(batch),
            new_spots=len(found) - seen_before,
        )

        if not criteria.allows_paging:
            break
        if cap is not None and len(found) >= cap:
            break
        if len(found) == seen_before:
            break

    spots = sorted(found.values(), key=criteria.sort_key)
    if cap is not None and len(spots) > cap:
        spots = spots[:cap]
    log.info("spot_search_finished", found=len(found), returned=len(spots))
    return spots
