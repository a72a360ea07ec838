from __future__ import annotations

from typing import Optional


class SpotfinderError(Exception):
    """Base class for everything the client raises."""


class RateLimitExceededError(SpotfinderError):
    """No request permit became available within the configured timeout."""

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self.timeout_s = timeout_s
        detail = f" within {timeout_s}s" if timeout_s is not None else ""
        super().__init__(f"Rate limit exceeded: no request permit available{detail}")


class RequestError(SpotfinderError):
    """A request failed. Raised as-is for statuses without a dedicated subclass."""

    def __init__(self, message: str, *, resource: str = "", status: Optional[int] = None) -> None:
        self.resource = resource
        self.status = status
        super().__init__(message)


class MalformedRequestError(RequestError):
    pass


class NotAuthorizedError(RequestError):
    pass


class NotFoundError(RequestError):
    pass


class NotAcceptableError(NotFoundError):
    """The server answers 406 for ids it does not know."""


class ServiceUnavailableError(RequestError):
    pass


class TranslationError(SpotfinderError):
    """A response body did not match the expected shape."""
