from __future__ import annotations

from enum import IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel


class PhotoType(IntEnum):
    """Photo variants, valued by how much we prefer them."""

    UNKNOWN = 0
    SQUARE = 1
    LOW_RES = 2
    HIGH_RES = 3


class Photo(BaseModel):
    photo_type: PhotoType = PhotoType.UNKNOWN
    url: str
    width: int = 0
    height: int = 0

    @property
    def area(self) -> int:
        return self.width * self.height


def parse_photo(key: Optional[str], url: str) -> Photo:
    """Build a Photo from one ``photo_urls`` entry.

    Keys look like ``square_75`` or ``high_res_320x480``; anything else is
    kept with an UNKNOWN type and no dimensions.
    """
    if not key:
        return Photo(url=url)
    if key.startswith("square_"):
        side = int(key.rsplit("_", 1)[-1])
        return Photo(photo_type=PhotoType.SQUARE, url=url, width=side, height=side)
    for prefix, photo_type in (("high_res_", PhotoType.HIGH_RES), ("low_res_", PhotoType.LOW_RES)):
        if key.startswith(prefix):
            width, height = key.rsplit("_", 1)[-1].split("x")
            return Photo(photo_type=photo_type, url=url, width=int(width), height=int(height))
    return Photo(url=url)


def parse_photos(photo_urls: Optional[Dict[str, str]]) -> List[Photo]:
    """Parse a ``photo_urls`` map, best photo first (type, then area)."""
    photos = [parse_photo(key, url) for key, url in (photo_urls or {}).items()]
    photos.sort(key=lambda p: (p.photo_type, p.area), reverse=True)
    return photos
