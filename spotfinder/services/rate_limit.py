from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import ContextManager, Iterator, Optional, Protocol

import structlog

from spotfinder.errors import RateLimitExceededError

log = structlog.get_logger(__name__)


class RateLimiter(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...

    def permit(self) -> ContextManager[None]: ...


class ConcurrentRequestLimiter:
    """Bounds the number of requests in flight at once.

    ``max_concurrent_requests`` below 1 is raised to 1. With ``timeout_s``
    set, a caller that cannot get a permit in time gets
    RateLimitExceededError; without it the caller waits as long as needed.
    """

    def __init__(self, max_concurrent_requests: int = 1, *, timeout_s: Optional[float] = None) -> None:
        self.max_concurrent_requests = max(1, max_concurrent_requests)
        self.timeout_s = timeout_s
        self._semaphore = threading.BoundedSemaphore(self.max_concurrent_requests)

    def acquire(self) -> None:
        if not self._semaphore.acquire(timeout=self.timeout_s):
            log.warning("rate_limit_exceeded", timeout_s=self.timeout_s)
            raise RateLimitExceededError(self.timeout_s)
        log.debug("rate_limit_permit_granted")

    def release(self) -> None:
        self._semaphore.release()

    @contextmanager
    def permit(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()


class UnboundedRateLimiter:
    """Limiter that never blocks."""

    def acquire(self) -> None:
        pass

    def release(self) -> None:
        pass

    @contextmanager
    def permit(self) -> Iterator[None]:
        yield
