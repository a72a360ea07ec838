from __future__ import annotations

import random

import pytest

from spotfinder.criteria import PagingMode, SearchCriteria
from spotfinder.errors import NotAcceptableError, NotFoundError, ServiceUnavailableError
from spotfinder.services.search import find_spots


class Pages:
    """Serves a fixed page per offset and records what was requested."""

    def __init__(self, criteria, pages, spot_factory):
        self.criteria = criteria
        self.pages = pages
        self.spot_factory = spot_factory
        self.requested = []

    def __call__(self, resource):
        self.requested.append(resource)
        offsets = {self.criteria.query(offset): offset for offset in self.pages}
        page = self.pages[offsets[resource]]
        if isinstance(page, Exception):
            raise page
        return [self.spot_factory(i) for i in page]


def _criteria(anchor, **options):
    options.setdefault("paging", PagingMode.PAGING_ALLOWED)
    return SearchCriteria(anchor, 1000, **options)


def test_single_request_when_paging_disabled(anchor, spot_factory):
    criteria = SearchCriteria(anchor, 1000, limit=100)
    pages = Pages(criteria, {0: range(1, 11), 10: range(11, 21)}, spot_factory)

    spots = find_spots(pages, criteria)

    assert pages.requested == [criteria.base_query]
    assert [s.id for s in spots] == list(range(1, 11))


def test_overlapping_pages_fill_the_cap(anchor, spot_factory):
    criteria = _criteria(anchor, limit=100)
    first = list(range(1, 61))
    second = list(range(56, 101))
    random.Random(4).shuffle(first)
    pages = Pages(criteria, {0: first, 60: second}, spot_factory)

    spots = find_spots(pages, criteria)

    assert pages.requested == [criteria.base_query, criteria.base_query + "&offset=60"]
    assert len(spots) == 100
    assert len({s.id for s in spots}) == 100
    # Spot ids grow with distance from the anchor.
    assert [s.id for s in spots] == list(range(1, 101))


def test_stops_once_cap_is_met(anchor, spot_factory):
    criteria = _criteria(anchor, limit=50)
    pages = Pages(criteria, {0: range(60, 0, -1), 60: range(61, 121)}, spot_factory)

    spots = find_spots(pages, criteria)

    assert len(pages.requested) == 1
    assert [s.id for s in spots] == list(range(1, 51))


def test_stops_when_page_adds_nothing(anchor, spot_factory):
    criteria = _criteria(anchor, limit=None)
    pages = Pages(criteria, {0: range(1, 21), 20: range(1, 21)}, spot_factory)

    spots = find_spots(pages, criteria)

    assert len(pages.requested) == 2
    assert len(spots) == 20


def test_duplicates_within_a_page_count_once(anchor, spot_factory):
    criteria = _criteria(anchor, limit=10)
    pages = Pages(criteria, {0: [1, 2, 2, 3, 3, 3], 3: [3, 4], 4: [4]}, spot_factory)

    spots = find_spots(pages, criteria)

    assert [s.id for s in spots] == [1, 2, 3, 4]
    assert pages.requested[1].endswith("&offset=3")
    assert len(pages.requested) == 3


def test_custom_ordering(anchor, spot_factory):
    criteria = _criteria(anchor, limit=3, order_key=lambda s: -s.checkins_count)
    pages = Pages(criteria, {0: [1, 2, 3, 4]}, spot_factory)

    spots = find_spots(pages, criteria)

    # Most checked-in first, then cut to the cap.
    assert [s.id for s in spots] == [4, 3, 2]


@pytest.mark.parametrize("error", [NotFoundError("none", status=404), NotAcceptableError("none", status=406)])
def test_no_results_is_empty(anchor, spot_factory, error):
    criteria = _criteria(anchor)
    pages = Pages(criteria, {0: error}, spot_factory)
    assert find_spots(pages, criteria) == []


def test_not_found_on_later_page_propagates(anchor, spot_factory):
    criteria = _criteria(anchor, limit=100)
    pages = Pages(criteria, {0: range(1, 41), 40: NotFoundError("none", status=404)}, spot_factory)

    with pytest.raises(NotFoundError):
        find_spots(pages, criteria)
    assert len(pages.requested) == 2


def test_other_errors_propagate(anchor, spot_factory):
    criteria = _criteria(anchor)
    pages = Pages(criteria, {0: ServiceUnavailableError("down", status=503)}, spot_factory)
    with pytest.raises(ServiceUnavailableError):
        find_spots(pages, criteria)


def test_requires_criteria():
    with pytest.raises(ValueError):
        find_spots(lambda resource: [], None)
