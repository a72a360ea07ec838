from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional, Sequence, Tuple, Type

import aiohttp
import structlog
from multidict import CIMultiDict

from spotfinder.errors import (
    MalformedRequestError,
    NotAcceptableError,
    NotAuthorizedError,
    NotFoundError,
    RequestError,
    ServiceUnavailableError,
    TranslationError,
)
from spotfinder.services.handlers import RequestHeader

log = structlog.get_logger(__name__)

DEFAULT_HOST = "api.gowalla.com"

_STATUS_ERRORS: Dict[int, Tuple[Type[RequestError], str]] = {
    400: (MalformedRequestError, "Bad request"),
    401: (NotAuthorizedError, "Invalid or missing credentials"),
    404: (NotFoundError, "Not found"),
    406: (NotAcceptableError, "Not acceptable"),
    503: (ServiceUnavailableError, "Service unavailable (might be temporary)"),
}


def error_for_status(status: int, resource: str) -> RequestError:
    error_cls, reason = _STATUS_ERRORS.get(status, (RequestError, "Request failed"))
    return error_cls(f"{reason}: HTTP {status} for {resource}", resource=resource, status=status)


class AiohttpTransport:
    """Terminal request handler doing one HTTP GET per call.

    Each call runs on its own event loop with its own session, so any thread
    may use the transport as long as it is not already running a loop.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = 80,
        *,
        scheme: str = "http",
        timeout_s: float = 20.0,
        headers: Iterable[RequestHeader] = (),
    ) -> None:
        self.host = host
        self.port = port
        self.scheme = scheme
        self.timeout_s = timeout_s
        self._headers: Tuple[RequestHeader, ...] = tuple(dict.fromkeys(headers))

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def headers(self) -> Tuple[RequestHeader, ...]:
        return self._headers

    def configure(
        self,
        *,
        headers: Optional[Iterable[RequestHeader]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        if headers is not None:
            self._headers = tuple(dict.fromkeys(headers))
        if host is not None:
            self.host = host
        if port is not None:
            self.port = port

    def build_headers(self, headers: Sequence[RequestHeader] = ()) -> CIMultiDict:
        """Base headers first, then the per-call ones; repeated keys are kept."""
        return CIMultiDict((h.key, h.value) for h in (*self._headers, *headers))

    def execute(self, resource: str, headers: Sequence[RequestHeader] = ()) -> str:
        return asyncio.run(self._fetch(resource, headers))

    async def _fetch(self, resource: str, headers: Sequence[RequestHeader]) -> str:
        url = f"{self.base_url}{resource}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self.build_headers(headers)) as resp:
                    if resp.status >= 400:
                        raise error_for_status(resp.status, resource)
                    try:
                        body = await resp.text(encoding="utf-8")
                    except UnicodeDecodeError as exc:
                        raise TranslationError(f"Response for {resource} is not valid UTF-8") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            log.warning("transport_error", url=url, error=str(exc))
            raise RequestError(f"Request failed for {resource}: {exc}", resource=resource) from exc

        log.debug("transport_response", url=url, bytes=len(body))
        return body
