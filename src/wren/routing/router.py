"""Compiled router with ordered, first-match path matching.

Routes are registered during setup and frozen into an immutable table
when the app freezes. Matching scans that table in registration order,
so when two templates both accept a path the earlier one wins.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, unquote, urlencode

from wren.errors import BadRequest, ConfigurationError, MethodNotAllowed, NotFound
from wren.routing.compiler import match_path, param_names
from wren.routing.route import Route, RouteMatch

logger = logging.getLogger("wren.routing")


def normalize_path(path: str, app_path: str = "") -> str:
    """Normalize a request path for matching.

    Strips *app_path* once from the front (apps mounted under a sub-path),
    then a trailing ``/``. An empty result becomes ``/``::

        normalize_path("/blog/posts/", "/blog")  -> "/posts"
        normalize_path("/blog", "/blog")         -> "/"
    """
    prefix = app_path.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix) :]
    if path != "/":
        path = path.rstrip("/")
    return path or "/"


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add(route_a)
        router.add(route_b)
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_named", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._named: dict[str, Route] = {}
        self._compiled = False

    def add(self, route: Route) -> None:
        """Append a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        if route.name is not None:
            if route.name in self._named:
                existing = self._named[route.name]
                msg = (
                    f"Duplicate route name {route.name!r}: "
                    f"{existing.method} {existing.path} and {route.method} {route.path}"
                )
                raise ConfigurationError(msg)
            self._named[route.name] = route
        self._routes.append(route)

    def compile(self) -> None:
        """Freeze the table. No routes may be added afterwards."""
        self._compiled = True
        logger.debug("Compiled %d route(s)", len(self._routes))

    @property
    def routes(self) -> tuple[Route, ...]:
        """All routes in registration order."""
        return tuple(self._routes)

    def has_route(self, name: str) -> bool:
        """Return True if a route named *name* exists."""
        return name in self._named

    def match(self, method: str, path: str) -> RouteMatch:
        """Find the first route accepting *method* and *path*.

        *path* must already be normalized (see ``normalize_path``) and
        still percent-encoded; captured values are decoded here.

        Raises:
            NotFound: No route template accepts the path.
            BadRequest: A captured value decodes to invalid UTF-8.
            MethodNotAllowed: Some templates accept the path, but none
                for this method.
        """
        allowed: set[str] = set()

        for route in self._routes:
            captures = match_path(route.matcher, path)
            if captures is None:
                continue
            if route.method != method:
                allowed.add(route.method)
                continue
            try:
                params = {
                    key: unquote(value, errors="strict") for key, value in captures.items()
                }
            except UnicodeDecodeError:
                logger.debug("%s %s: path parameter is not valid UTF-8", method, path)
                raise BadRequest("Malformed percent-encoding in path") from None
            return RouteMatch(route=route, path_params=params)

        if allowed:
            logger.debug("%s %s: method not allowed (allowed: %s)", method, path, sorted(allowed))
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound

    def url_for(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        *,
        app_path: str = "",
        base_url: str = "",
    ) -> str:
        """Build the URL for the route named *name*.

        Values whose keys appear in the template fill the placeholders;
        the rest become the query string::

            url_for("users.show", {"id": 5, "sort": "asc"})  -> "/users/5?sort=asc"

        Raises:
            NotFound: No route is named *name*.
            ValueError: A placeholder has no value in *params*.
        """
        route = self._named.get(name)
        if route is None:
            raise NotFound(f"No route named {name!r}")

        remaining = dict(params or {})
        path = route.path
        for param in param_names(route.path):
            if param not in remaining:
                msg = f"Missing value for parameter {param!r} of route {name!r} ({route.path})"
                raise ValueError(msg)
            value = quote(str(remaining.pop(param)), safe="")
            path = _substitute(path, param, value)

        url = base_url.rstrip("/") + app_path.rstrip("/") + path
        if remaining:
            url += "?" + urlencode(remaining, doseq=True)
        return url


def _substitute(path: str, param: str, value: str) -> str:
    pattern = re.compile(r"\{" + re.escape(param) + r"(?::[^{}]*)?\}")
    return pattern.sub(lambda _: value, path, count=1)
