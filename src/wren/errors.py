"""Wren exception hierarchy.

Shared across Router, App, rate limiter, handler and middleware so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration is invalid.

    Typically raised during registration or ``App.freeze()`` at startup.
    """


class HandlerNotFound(ConfigurationError):  # noqa: N818 — conventional name in web frameworks
    """A controller class or controller method could not be located.

    Raised while the route table is compiled, so a missing controller
    stops the app from starting instead of failing a request.
    """


class UnresolvableDependency(WrenError):  # noqa: N818
    """A handler parameter could not be bound to a value.

    Treated as a server-side defect (500): no name, type, container
    entry, default or ``None`` fallback applied.
    """

    def __init__(self, parameter: str, target: str, detail: str = "") -> None:
        self.parameter = parameter
        self.target = target
        message = f"Unresolvable dependency resolving [{parameter}] in {target}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, rate limiter, middleware, or handlers. The ASGI
    handler catches these and dispatches to the matching ``@app.error()``
    handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400. The request cannot be interpreted, e.g. an undecodable path segment."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404 — no registered route matches the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — a route matches the path but not the request method.

    Carries the deduplicated set of methods that would have matched in
    ``allowed`` and as an ``Allow`` header.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
        object.__setattr__(self, "allowed", frozenset(allowed))


class RateLimitExceeded(HTTPError):  # noqa: N818
    """429 — the route's request budget for this client is spent.

    ``retry_after`` is the number of seconds until the current window
    expires. Clients are expected to back off; nothing retries for them.
    """

    def __init__(self, retry_after: int, limit: int, detail: str = "") -> None:
        super().__init__(
            status=429,
            detail=detail or "Too many requests. Please try again later.",
            headers=(
                ("X-RateLimit-Limit", str(limit)),
                ("X-RateLimit-Remaining", "0"),
                ("Retry-After", str(retry_after)),
            ),
        )
        object.__setattr__(self, "retry_after", retry_after)
        object.__setattr__(self, "limit", limit)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — the request body is larger than the configured maximum."""

    def __init__(self, detail: str = "The request payload exceeds the allowed size.") -> None:
        super().__init__(status=413, detail=detail)
