"""Request handlers and the decorator chain wrapped around them.

A chain is a terminal handler (the one that talks to the network) plus an
ordered list of decorators. Each decorator may rewrite the resource before
the call, rewrite the body after a success, or turn a failure into a body or
into another failure. Pre-request hooks run outermost first; post hooks run
innermost first, so the outermost decorator sees the final resource and the
final body. A failure in any hook of a decorator, or anywhere inside it, goes
to that decorator's failure hook.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, Type

import structlog

from spotfinder.errors import RequestError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RequestHeader:
    key: str
    value: str


class RequestHandler(Protocol):
    def execute(self, resource: str, headers: Sequence[RequestHeader] = ()) -> str: ...

    def configure(
        self,
        *,
        headers: Optional[Iterable[RequestHeader]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None: ...


PreRequestHook = Callable[[str], Optional[str]]
PostSuccessHook = Callable[[str], Optional[str]]
PostFailureHook = Callable[[RequestError], str]


def _reraise(error: RequestError) -> str:
    raise error


@dataclass(frozen=True)
class Decorator:
    """Hooks applied around one request.

    ``pre_request`` and ``post_success`` may return None to keep their input.
    ``post_failure`` returns a substitute body or raises.
    """

    pre_request: Optional[PreRequestHook] = None
    post_success: Optional[PostSuccessHook] = None
    post_failure: Optional[PostFailureHook] = None
    name: str = "decorator"

    def before(self, resource: str) -> str:
        if self.pre_request is None:
            return resource
        replaced = self.pre_request(resource)
        return resource if replaced is None else replaced

    def on_success(self, body: str) -> str:
        if self.post_success is None:
            return body
        replaced = self.post_success(body)
        return body if replaced is None else replaced

    def on_failure(self, error: RequestError) -> str:
        return (self.post_failure or _reraise)(error)


class HandlerChain:
    """A terminal handler with decorators applied, innermost first."""

    def __init__(self, terminal: RequestHandler, decorators: Sequence[Decorator] = ()) -> None:
        self._terminal = terminal
        self._decorators: Tuple[Decorator, ...] = tuple(decorators)

    @property
    def decorators(self) -> Tuple[Decorator, ...]:
        return self._decorators

    def configure(
        self,
        *,
        headers: Optional[Iterable[RequestHeader]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        self._terminal.configure(headers=headers, host=host, port=port)

    def execute(self, resource: str, headers: Sequence[RequestHeader] = ()) -> str:
        return self._execute(len(self._decorators) - 1, resource, headers)

    def _execute(self, index: int, resource: str, headers: Sequence[RequestHeader]) -> str:
        if index < 0:
            return self._terminal.execute(resource, headers)

        decorator = self._decorators[index]
        # A decorator's post_failure also sees failures of its own pre and success hooks.
        try:
            resource = decorator.before(resource)
            body = self._execute(index - 1, resource, headers)
            return decorator.on_success(body)
        except RequestError as exc:
            return decorator.on_failure(exc)


class ChainBuilder:
    """Builds a HandlerChain; each ``wrap`` goes outside the previous ones."""

    def __init__(self, terminal: RequestHandler) -> None:
        self._terminal = terminal
        self._decorators: List[Decorator] = []

    def wrap(self, decorator: Decorator) -> ChainBuilder:
        self._decorators.append(decorator)
        return self

    def build(self) -> HandlerChain:
        return HandlerChain(self._terminal, self._decorators)


def logging_decorator(name: str = "request_log") -> Decorator:
    """Logs every resource requested, its body size and any failure."""

    def pre_request(resource: str) -> None:
        log.info("request_started", resource=resource, decorator=name)

    def post_success(body: str) -> None:
        log.info("request_succeeded", bytes=len(body), decorator=name)

    def post_failure(error: RequestError) -> str:
        log.warning(
            "request_failed",
            resource=error.resource,
            status=error.status,
            error=type(error).__name__,
            decorator=name,
        )
        raise error

    return Decorator(pre_request=pre_request, post_success=post_success, post_failure=post_failure, name=name)


def fallback_decorator(
    body: str,
    errors: Tuple[Type[RequestError], ...] = (RequestError,),
    name: str = "fallback",
) -> Decorator:
    """Answers with ``body`` when the wrapped call fails with one of ``errors``."""

    def post_failure(error: RequestError) -> str:
        if isinstance(error, errors):
            log.info("request_fallback_used", error=type(error).__name__, decorator=name)
            return body
        raise error

    return Decorator(post_failure=post_failure, name=name)


def prefix_decorator(prefix: str, name: str = "prefix") -> Decorator:
    """Prepends ``prefix`` to every resource, e.g. an API mount point."""
    return Decorator(pre_request=lambda resource: prefix.rstrip("/") + resource, name=name)
