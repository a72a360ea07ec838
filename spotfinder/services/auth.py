from __future__ import annotations

import base64
from typing import Protocol, Tuple

from spotfinder.services.handlers import RequestHeader


class Authentication(Protocol):
    @property
    def headers(self) -> Tuple[RequestHeader, ...]: ...


class AnonymousAuthentication:
    @property
    def headers(self) -> Tuple[RequestHeader, ...]:
        return ()


class BasicAuthentication:
    """HTTP basic auth; the header is encoded once and reused."""

    def __init__(self, username: str, password: str) -> None:
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        self._headers = (RequestHeader("Authorization", f"Basic {token}"),)

    @property
    def headers(self) -> Tuple[RequestHeader, ...]:
        return self._headers
