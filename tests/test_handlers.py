from __future__ import annotations

import pytest

from spotfinder.errors import NotFoundError, RequestError, ServiceUnavailableError
from spotfinder.services.handlers import (
    ChainBuilder,
    Decorator,
    RequestHeader,
    fallback_decorator,
    logging_decorator,
    prefix_decorator,
)


def _recording(name, events):
    def pre_request(resource):
        events.append(f"{name}.pre")

    def post_success(body):
        events.append(f"{name}.success")

    def post_failure(error):
        events.append(f"{name}.failure")
        raise error

    return Decorator(pre_request=pre_request, post_success=post_success, post_failure=post_failure, name=name)


def test_hooks_run_outside_in_then_inside_out(fake_handler):
    events = []
    chain = ChainBuilder(fake_handler(default="{}")).wrap(_recording("inner", events)).wrap(_recording("outer", events)).build()

    assert chain.execute("/spots") == "{}"
    assert events == ["outer.pre", "inner.pre", "inner.success", "outer.success"]
    assert [d.name for d in chain.decorators] == ["inner", "outer"]


def test_failure_hooks_run_inside_out(fake_handler):
    events = []
    handler = fake_handler(default=ServiceUnavailableError("down", resource="/spots", status=503))
    chain = ChainBuilder(handler).wrap(_recording("inner", events)).wrap(_recording("outer", events)).build()

    with pytest.raises(ServiceUnavailableError):
        chain.execute("/spots")
    assert events == ["outer.pre", "inner.pre", "inner.failure", "outer.failure"]


def test_resource_rewrite_reaches_terminal(fake_handler):
    handler = fake_handler(default="{}")
    chain = (
        ChainBuilder(handler)
        .wrap(Decorator(pre_request=lambda r: r + "?inner=1"))
        .wrap(Decorator(pre_request=lambda r: "/v2" + r))
        .build()
    )

    chain.execute("/spots", (RequestHeader("X-Test", "1"),))
    assert handler.calls == [("/v2/spots?inner=1", (RequestHeader("X-Test", "1"),))]


def test_body_rewrite_outermost_last(fake_handler):
    chain = (
        ChainBuilder(fake_handler(default="body"))
        .wrap(Decorator(post_success=lambda b: b + "+inner"))
        .wrap(Decorator(post_success=lambda b: b + "+outer"))
        .build()
    )
    assert chain.execute("/x") == "body+inner+outer"


def test_fallback_substitutes_body(fake_handler):
    events = []
    handler = fake_handler(default=NotFoundError("gone", resource="/spots/1", status=404))
    chain = ChainBuilder(handler).wrap(fallback_decorator('{"spots": []}')).wrap(_recording("outer", events)).build()

    assert chain.execute("/spots/1") == '{"spots": []}'
    assert events == ["outer.pre", "outer.success"]


def test_fallback_ignores_other_errors(fake_handler):
    handler = fake_handler(default=ServiceUnavailableError("down", status=503))
    chain = ChainBuilder(handler).wrap(fallback_decorator("{}", errors=(NotFoundError,))).build()

    with pytest.raises(ServiceUnavailableError):
        chain.execute("/spots/1")


def test_failure_can_be_converted(fake_handler):
    def convert(error):
        raise NotFoundError("converted", resource=error.resource, status=404) from error

    handler = fake_handler(default=RequestError("teapot", resource="/x", status=418))
    chain = ChainBuilder(handler).wrap(Decorator(post_failure=convert)).build()

    with pytest.raises(NotFoundError) as excinfo:
        chain.execute("/x")
    assert excinfo.value.resource == "/x"


def test_success_hook_failure_reaches_outer_decorators(fake_handler):
    def reject(body):
        raise RequestError("bad body")

    chain = (
        ChainBuilder(fake_handler(default="body"))
        .wrap(Decorator(post_success=reject))
        .wrap(fallback_decorator("recovered"))
        .build()
    )
    assert chain.execute("/x") == "recovered"


def test_configure_goes_to_terminal(fake_handler):
    handler = fake_handler(default="{}")
    chain = ChainBuilder(handler).wrap(logging_decorator()).build()
    headers = [RequestHeader("Accept", "application/json")]

    chain.configure(headers=headers, host="example.test", port=8080)
    assert handler.configured == {"headers": headers, "host": "example.test", "port": 8080}


def test_prefix_decorator(fake_handler):
    handler = fake_handler(default="{}")
    ChainBuilder(handler).wrap(prefix_decorator("/api/")).build().execute("/spots")
    assert handler.calls[0][0] == "/api/spots"


def test_logging_decorator_is_transparent(fake_handler):
    chain = ChainBuilder(fake_handler(default="body")).wrap(logging_decorator()).build()
    assert chain.execute("/x") == "body"

    failing = ChainBuilder(fake_handler(default=NotFoundError("gone", status=404))).wrap(logging_decorator()).build()
    with pytest.raises(NotFoundError):
        failing.execute("/x")


def test_own_failure_hook_sees_own_hook_failures(fake_handler):
    def reject(body):
        raise RequestError("bad body")

    def refuse(resource):
        raise RequestError("bad resource", resource=resource)

    validating = ChainBuilder(fake_handler(default="body"))
    validating.wrap(Decorator(post_success=reject, post_failure=lambda error: "recovered"))
    assert validating.build().execute("/x") == "recovered"

    handler = fake_handler(default="body")
    guarded = ChainBuilder(handler).wrap(Decorator(pre_request=refuse, post_failure=lambda error: error.resource))
    assert guarded.build().execute("/x") == "/x"
    assert handler.calls == []
