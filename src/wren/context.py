"""Per-request state held in context variables.

``handle_request`` sets these when a request arrives and resets them once
the response is built, so each asyncio task sees only its own request.

``request_var`` has no default; reading it outside a request raises
``LookupError``. ``route_var`` and ``rate_limit_var`` read ``None`` until
dispatch has selected a route and counted the hit.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.ratelimit import RateLimitStatus
    from wren.routing.route import Route

request_var: ContextVar[Request] = ContextVar("wren_request")
route_var: ContextVar[Route | None] = ContextVar("wren_route", default=None)

rate_limit_var: ContextVar[RateLimitStatus | None] = ContextVar("wren_rate_limit", default=None)
"""Quota state for the current request; the error path reads it to keep the headers."""


def get_request() -> Request:
    """The request being handled. Raises ``LookupError`` outside a request."""
    return request_var.get()


def get_route() -> Route | None:
    return route_var.get()


class _RequestGlobals:
    """Attribute bag that middleware fills in and handlers read back.

    ::

        async def authenticate(request, next):
            g.user = await load_user(request)
            return await next(request)

    ``handle_request`` opens a fresh namespace per request with ``_open``
    and restores the previous one with ``_close``.
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", ContextVar("wren_g", default=None))

    def _data(self) -> dict[str, Any]:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        data = store.get()
        if data is None:
            data = {}
            store.set(data)
        return data

    def _open(self) -> Token[dict[str, Any] | None]:
        return object.__getattribute__(self, "_store").set({})

    def _close(self, token: Token[dict[str, Any] | None]) -> None:
        object.__getattribute__(self, "_store").reset(token)

    def __getattr__(self, name: str) -> Any:
        data = self._data()
        if name not in data:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg)
        return data[name]

    def __setattr__(self, name: str, value: Any) -> None:
        self._data()[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data()[name]
        except KeyError:
            raise AttributeError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._data()

    def get(self, name: str, default: Any = None) -> Any:
        return self._data().get(name, default)

    def __repr__(self) -> str:
        return f"<g {self._data()!r}>"


g = _RequestGlobals()
