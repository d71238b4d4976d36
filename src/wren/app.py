"""Wren application class.

Mutable during setup (route registration, middleware, services).
Frozen at runtime when ``__call__()`` is first invoked, or explicitly by
``app.freeze()``.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any, TypeAlias
from urllib.parse import quote

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import ErrorHandler, Factory, Handler
from wren.cache.memory import MemoryCache
from wren.cache.protocol import Cache
from wren.config import AppConfig
from wren.container import Container
from wren.context import rate_limit_var, request_var, route_var
from wren.errors import MethodNotAllowed
from wren.handlers import resolve_handler
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.pipeline import compose
from wren.middleware.protocol import Middleware
from wren.ratelimit import RateLimiter
from wren.routing.route import Route, RouteHandle
from wren.routing.router import Router, normalize_path
from wren.server.handler import handle_request
from wren.server.negotiation import negotiate

logger = logging.getLogger("wren.app")

# ``limit=`` on @app.route: a request count (default window) or (count, seconds)
LimitSpec: TypeAlias = int | tuple[int, int]


class App:
    """The wren application.

    Mutable during setup (route registration, middleware, services).
    Frozen at runtime when ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when several ASGI workers call
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_container",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        "_rate_limiter",
        # Compiled state (populated by _freeze)
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        cache: Cache | None = None,
        container: Container | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[RouteHandle] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._container: Container = container or Container()
        self._rate_limiter: RateLimiter = RateLimiter(
            cache if cache is not None else MemoryCache(),
            prefix=self.config.rate_limit_prefix,
        )
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state — set during _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def register(self, method: str, path: str, handler: Any) -> RouteHandle:
        """Register *handler* for *method* requests to *path*.

        *handler* is a callable or a controller reference
        (``"Controller@method"``, ``"module:Controller@method"`` or
        ``(Controller, "method")``). Returns a handle for naming, route
        middleware and rate limits::

            app.register("GET", "/users/{id}", show_user).name("users.show")
        """
        self._check_not_frozen()
        handle = RouteHandle(method, path, handler, check=self._check_not_frozen)
        self._pending_routes.append(handle)
        return handle

    def get(self, path: str, handler: Any) -> RouteHandle:
        return self.register("GET", path, handler)

    def post(self, path: str, handler: Any) -> RouteHandle:
        return self.register("POST", path, handler)

    def put(self, path: str, handler: Any) -> RouteHandle:
        return self.register("PUT", path, handler)

    def patch(self, path: str, handler: Any) -> RouteHandle:
        return self.register("PATCH", path, handler)

    def delete(self, path: str, handler: Any) -> RouteHandle:
        return self.register("DELETE", path, handler)

    def route(
        self,
        path: str,
        *,
        methods: Sequence[str] | None = None,
        name: str | None = None,
        middleware: Sequence[Middleware] = (),
        limit: LimitSpec | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``. Each method
                becomes its own route.
            name: Optional route name for ``url_for()``. With several
                methods, the name goes to the first one.
            middleware: Route middleware, run in order around the handler.
            limit: Requests per client per window, as a count (default
                window) or a ``(count, seconds)`` pair.
        """

        def decorator(func: Handler) -> Handler:
            for index, method in enumerate(methods or ["GET"]):
                handle = self.register(method, path, func)
                if name is not None and index == 0:
                    handle.name(name)
                if middleware:
                    handle.middleware(*middleware)
                if limit is not None:
                    if isinstance(limit, tuple):
                        handle.limit(*limit)
                    else:
                        handle.limit(limit)
            return func

        return decorator

    # -- Service injection --

    def provide(self, annotation: type, factory: Factory, *, shared: bool = False) -> None:
        """Register a provider factory for dependency injection.

        When a handler or controller constructor parameter is annotated
        with *annotation*, wren calls *factory* (with no arguments) and
        injects the result. A *shared* factory runs once::

            app.provide(DocumentStore, get_store, shared=True)

            def show(store: DocumentStore): ...
        """
        self._check_not_frozen()
        self._container.provide(annotation, factory, shared=shared)

    def instance(self, annotation: type, obj: Any) -> None:
        """Register a ready-made object for *annotation*."""
        self._check_not_frozen()
        self._container.instance(annotation, obj)

    @property
    def container(self) -> Container:
        return self._container

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the global pipeline (runs for every request)."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Routing --

    @property
    def routes(self) -> tuple[Route, ...]:
        """The compiled route table, in registration order."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes

    def url_for(self, name: str, /, **params: Any) -> str:
        """Build the URL of the route named *name*.

        Keyword arguments fill path placeholders; the rest become the
        query string::

            app.url_for("users.show", id=5, sort="asc")  # "/users/5?sort=asc"

        Raises:
            NotFound: No route has that name.
            ValueError: A path placeholder has no value.
        """
        self._ensure_frozen()
        assert self._router is not None
        return self._router.url_for(
            name,
            params,
            app_path=self.config.app_path,
            base_url=self.config.base_url,
        )

    def has_route(self, name: str) -> bool:
        self._ensure_frozen()
        assert self._router is not None
        return self._router.has_route(name)

    async def dispatch(self, request: Request) -> Response:
        """Route *request* to its handler and return the response.

        The rate limit is checked before any route middleware or handler
        code runs. Path parameters are merged into ``request.inputs``
        (overriding query and body values of the same name), and the
        selected route is published on ``request.route`` and
        ``wren.context.route_var``. The quota status goes to
        ``rate_limit_var`` so error responses carry the same headers.

        Raises:
            NotFound: No route matches the path.
            MethodNotAllowed: Routes match the path, none for this method.
            RateLimitExceeded: The client spent the route's budget.
        """
        self._ensure_frozen()
        assert self._router is not None

        path = normalize_path(request.raw_path or quote(request.path), self.config.app_path)
        try:
            match = self._router.match(request.method, path)
        except MethodNotAllowed:
            # HEAD is served by the GET route for the same path
            if request.method != "HEAD":
                raise
            match = self._router.match("GET", path)

        route = match.route
        status = await self._rate_limiter.hit(route, request.client_ip)
        rate_limit_var.set(status)

        request = request.with_route(route, match.path_params)
        route_var.set(route)
        request_var.set(request)

        async def call_handler(req: Request) -> Response:
            return negotiate(await route.handler(req, self._container))

        response = negotiate(await compose(route.middleware, call_handler)(request))
        if status is not None:
            response = response.with_headers(status.headers())
        return response

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            dispatch=self.dispatch,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
            forwarded_ip_header=self.config.forwarded_ip_header,
            max_content_length=self.config.max_content_length,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        try:
            self._ensure_frozen()
        except Exception as exc:
            logger.exception("App failed to start")
            await receive()
            await send({"type": "lifespan.startup.failed", "message": str(exc)})
            return

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run startup hooks in registration order."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def freeze(self) -> None:
        """Compile routes and middleware now instead of on the first request.

        Raises ``ConfigurationError`` (or ``HandlerNotFound``) for invalid
        routes, so calling this at startup surfaces mistakes early.
        """
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Multiple ASGI worker threads could call __call__() concurrently on
        the first request. This pattern ensures exactly one thread performs
        compilation.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table: resolve handlers, compile bindings
        router = Router()
        for handle in self._pending_routes:
            handler = resolve_handler(handle.target, namespace=self.config.controller_namespace)
            router.add(handle.build(handler, default_window=self.config.default_rate_window))
        router.compile()
        self._router = router

        # 2. Capture middleware as immutable tuple
        self._middleware = tuple(self._middleware_list)

        self._frozen = True
        logger.debug(
            "App frozen: %d route(s), %d middleware",
            len(router.routes),
            len(self._middleware),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and services before the first request."
            )
            raise RuntimeError(msg)
