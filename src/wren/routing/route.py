"""Route, RouteMatch, RateLimit frozen dataclasses and the RouteHandle builder."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wren.errors import ConfigurationError
from wren.routing.compiler import compile_path, normalize_template

if TYPE_CHECKING:
    from wren.binding import ParameterBinding
    from wren.handlers import ControllerHandler, FunctionHandler
    from wren.middleware.protocol import Middleware

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


@dataclass(frozen=True, slots=True)
class RateLimit:
    """Fixed-window request budget for one route and one client."""

    max_requests: int
    window_seconds: int

    @property
    def unlimited(self) -> bool:
        return self.max_requests <= 0


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created when the app freezes, never mutated afterwards. ``handler`` is
    already resolved: controller classes and methods are looked up and
    parameter bindings compiled before the first request.
    """

    method: str
    path: str
    matcher: re.Pattern[str]
    handler: FunctionHandler | ControllerHandler
    name: str | None = None
    middleware: tuple[Middleware, ...] = ()
    rate_limit: RateLimit | None = None

    @property
    def key(self) -> str:
        """Stable identifier: the route name, or the path template."""
        return self.name or self.path

    @property
    def bindings(self) -> tuple[ParameterBinding, ...]:
        """The handler's compiled parameter bindings."""
        return self.handler.bindings


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]


class RouteHandle:
    """Fluent configuration for a route that has not been compiled yet.

    Returned by ``App.register()`` and the ``App.get()``/``post()``/...
    shortcuts::

        app.get("/users/{id}", show_user).name("users.show").limit(30, 60)

    Every setter returns the handle itself. Setters raise
    ``RuntimeError`` once the app has started serving requests.
    """

    __slots__ = (
        "_check",
        "_middleware",
        "_name",
        "_rate_limit",
        "matcher",
        "method",
        "path",
        "target",
    )

    def __init__(
        self,
        method: str,
        path: str,
        target: Any,
        *,
        check: Callable[[], None] | None = None,
    ) -> None:
        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {method!r}. Use one of: {', '.join(HTTP_METHODS)}"
            raise ConfigurationError(msg)
        self.method = method
        self.path = normalize_template(path)
        self.matcher = compile_path(self.path)
        self.target = target
        self._check = check
        self._name: str | None = None
        self._middleware: list[Middleware] = []
        self._rate_limit: RateLimit | None = None

    def __repr__(self) -> str:
        return f"RouteHandle({self.method} {self.path!r}, name={self._name!r})"

    def name(self, name: str) -> RouteHandle:
        """Name the route for ``url_for()``."""
        self._guard()
        self._name = name
        return self

    def middleware(self, *middleware: Middleware) -> RouteHandle:
        """Append route middleware. Runs in attachment order, inbound."""
        self._guard()
        self._middleware.extend(middleware)
        return self

    def limit(self, max_requests: int, window_seconds: int | None = None) -> RouteHandle:
        """Allow *max_requests* per client per window. ``0`` means unlimited.

        When *window_seconds* is omitted, ``AppConfig.default_rate_window``
        applies at freeze time.
        """
        self._guard()
        if max_requests < 0:
            msg = f"Rate limit must be >= 0, got {max_requests}"
            raise ConfigurationError(msg)
        if window_seconds is not None and window_seconds <= 0:
            msg = f"Rate limit window must be positive, got {window_seconds}"
            raise ConfigurationError(msg)
        self._rate_limit = RateLimit(max_requests, window_seconds or 0)
        return self

    @property
    def route_name(self) -> str | None:
        return self._name

    @property
    def route_middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware)

    @property
    def rate_limit(self) -> RateLimit | None:
        return self._rate_limit

    def build(
        self,
        handler: FunctionHandler | ControllerHandler,
        *,
        default_window: int,
    ) -> Route:
        """Freeze this handle into a ``Route`` with a resolved handler."""
        rate_limit = self._rate_limit
        if rate_limit is not None and rate_limit.window_seconds == 0:
            rate_limit = RateLimit(rate_limit.max_requests, default_window)
        return Route(
            method=self.method,
            path=self.path,
            matcher=self.matcher,
            handler=handler,
            name=self._name,
            middleware=tuple(self._middleware),
            rate_limit=rate_limit,
        )

    def _guard(self) -> None:
        if self._check is not None:
            self._check()
