"""Wren — a small ASGI web framework with ordered routing, rate limits and autowired handlers.

Basic usage::

    from wren import App

    app = App()

    @app.route("/users/{id}", name="users.show", limit=(60, 60))
    def show_user(id: str):
        return {"id": id}

    app.get("/posts", "PostController@index").middleware(require_login)

Serve with any ASGI server (``uvicorn myapp:app``).
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "Container",
    "HTTPError",
    "HandlerNotFound",
    "MemoryCache",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "PayloadTooLarge",
    "RateLimitExceeded",
    "Redirect",
    "Request",
    "Response",
    "RouteHandle",
    "UnresolvableDependency",
    "WrenError",
    "g",
    "get_request",
    "get_route",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Container":
        from wren.container import Container

        return Container

    if name == "MemoryCache":
        from wren.cache.memory import MemoryCache

        return MemoryCache

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name == "RouteHandle":
        from wren.routing.route import RouteHandle

        return RouteHandle

    if name in ("Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("g", "get_request", "get_route"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "BadRequest",
        "ConfigurationError",
        "HTTPError",
        "HandlerNotFound",
        "MethodNotAllowed",
        "NotFound",
        "PayloadTooLarge",
        "RateLimitExceeded",
        "UnresolvableDependency",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
