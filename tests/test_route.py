"""Tests for wren.routing.route — Route, RateLimit, and the RouteHandle builder."""

import pytest

from wren.errors import ConfigurationError
from wren.handlers import FunctionHandler
from wren.routing.route import RateLimit, RouteHandle


def _handler() -> str:
    return "ok"


async def _mw(request, next):
    return await next(request)


class TestRouteHandle:
    def test_method_uppercased(self) -> None:
        handle = RouteHandle("get", "/users", _handler)
        assert handle.method == "GET"

    def test_unsupported_method(self) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported HTTP method"):
            RouteHandle("TRACE", "/users", _handler)

    def test_path_normalized(self) -> None:
        handle = RouteHandle("GET", "users/", _handler)
        assert handle.path == "/users"

    def test_invalid_template_fails_at_registration(self) -> None:
        with pytest.raises(ConfigurationError):
            RouteHandle("GET", "/users/{id}/{id}", _handler)

    def test_fluent_setters_return_handle(self) -> None:
        handle = RouteHandle("GET", "/users", _handler)
        assert handle.name("users") is handle
        assert handle.middleware(_mw) is handle
        assert handle.limit(10, 60) is handle

    def test_name(self) -> None:
        handle = RouteHandle("GET", "/users", _handler).name("users.index")
        assert handle.route_name == "users.index"

    def test_middleware_accumulates_in_order(self) -> None:
        async def other(request, next):
            return await next(request)

        handle = RouteHandle("GET", "/", _handler).middleware(_mw).middleware(other)
        assert handle.route_middleware == (_mw, other)

    def test_limit(self) -> None:
        handle = RouteHandle("GET", "/", _handler).limit(5, 30)
        assert handle.rate_limit == RateLimit(5, 30)

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            RouteHandle("GET", "/", _handler).limit(-1)

    def test_non_positive_window_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            RouteHandle("GET", "/", _handler).limit(5, 0)

    def test_guard_blocks_changes(self) -> None:
        def frozen() -> None:
            raise RuntimeError("frozen")

        handle = RouteHandle("GET", "/", _handler, check=frozen)
        with pytest.raises(RuntimeError, match="frozen"):
            handle.name("late")


class TestBuild:
    def test_build_copies_configuration(self) -> None:
        handle = RouteHandle("POST", "/items/{id}", _handler).name("items").middleware(_mw)
        route = handle.build(FunctionHandler.compile(_handler), default_window=60)
        assert route.method == "POST"
        assert route.path == "/items/{id}"
        assert route.name == "items"
        assert route.middleware == (_mw,)
        assert route.matcher.fullmatch("/items/3")

    def test_default_window_applied(self) -> None:
        handle = RouteHandle("GET", "/", _handler).limit(10)
        route = handle.build(FunctionHandler.compile(_handler), default_window=90)
        assert route.rate_limit == RateLimit(10, 90)

    def test_explicit_window_kept(self) -> None:
        handle = RouteHandle("GET", "/", _handler).limit(10, 5)
        route = handle.build(FunctionHandler.compile(_handler), default_window=90)
        assert route.rate_limit == RateLimit(10, 5)

    def test_no_limit(self) -> None:
        route = RouteHandle("GET", "/", _handler).build(
            FunctionHandler.compile(_handler), default_window=60
        )
        assert route.rate_limit is None

    def test_key_prefers_name(self) -> None:
        handler = FunctionHandler.compile(_handler)
        named = RouteHandle("GET", "/a", _handler).name("a").build(handler, default_window=60)
        unnamed = RouteHandle("GET", "/b/{x}", _handler).build(handler, default_window=60)
        assert named.key == "a"
        assert unnamed.key == "/b/{x}"

    def test_route_is_frozen(self) -> None:
        route = RouteHandle("GET", "/", _handler).build(
            FunctionHandler.compile(_handler), default_window=60
        )
        with pytest.raises(AttributeError):
            route.path = "/other"  # type: ignore[misc]


class TestRateLimit:
    def test_zero_is_unlimited(self) -> None:
        assert RateLimit(0, 60).unlimited
        assert not RateLimit(1, 60).unlimited
