from __future__ import annotations

import json
from typing import Callable, Dict, List, Optional, Sequence, Union

import pytest

from spotfinder.errors import RequestError
from spotfinder.models import GeoPoint, SimpleSpot
from spotfinder.services.handlers import RequestHeader

ANCHOR_LAT = 30.27
ANCHOR_LNG = -97.74


class FakeHandler:
    """Answers resources from a dict; values are bodies or exceptions to raise."""

    def __init__(self, responses: Optional[Dict[str, Union[str, RequestError]]] = None, default=None) -> None:
        self.responses = dict(responses or {})
        self.default = default
        self.calls: List[tuple] = []
        self.configured: Dict[str, object] = {}

    def configure(self, *, headers=None, host=None, port=None) -> None:
        self.configured.update(headers=headers, host=host, port=port)

    def execute(self, resource: str, headers: Sequence[RequestHeader] = ()) -> str:
        self.calls.append((resource, tuple(headers)))
        answer = self.responses.get(resource, self.default)
        if answer is None:
            raise AssertionError(f"unexpected resource {resource}")
        if isinstance(answer, Exception):
            raise answer
        return answer


def spot_payload(spot_id: int, *, step: float = 0.0001, with_id: bool = False) -> dict:
    """A search-result spot, further from the anchor as the id grows."""
    payload = {
        "url": f"/spots/{spot_id}",
        "name": f"Spot {spot_id}",
        "lat": f"{ANCHOR_LAT + spot_id * step:.6f}",
        "lng": f"{ANCHOR_LNG:.6f}",
        "radius_meters": 50,
        "checkins_count": spot_id,
    }
    if with_id:
        payload["id"] = spot_id
    return payload


def make_spot(spot_id: int, **overrides) -> SimpleSpot:
    payload = spot_payload(spot_id, with_id=True)
    payload.update(overrides)
    return SimpleSpot.model_validate(payload)


@pytest.fixture
def anchor() -> GeoPoint:
    return GeoPoint(latitude=ANCHOR_LAT, longitude=ANCHOR_LNG)


@pytest.fixture
def spot_factory() -> Callable[..., SimpleSpot]:
    return make_spot


@pytest.fixture
def fake_handler() -> Callable[..., FakeHandler]:
    return FakeHandler


@pytest.fixture
def spots_body() -> Callable[[Sequence[int]], str]:
    def build(ids: Sequence[int]) -> str:
        return json.dumps({"spots": [spot_payload(i) for i in ids]})

    return build
