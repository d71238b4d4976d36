"""Error handling pipeline for wren requests.

Maps HTTPError exceptions and unexpected failures to Response objects,
using registered error handlers or a default body. Default bodies are
JSON when the client's ``Accept`` header asks for JSON, plain text
otherwise. Debug mode adds the exception type and, for 500s, the
traceback.
"""

import inspect
import logging
import traceback
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

from wren.errors import BadRequest, HTTPError, MethodNotAllowed, NotFound, RateLimitExceeded
from wren.http.request import Request
from wren.http.response import Response
from wren.server.negotiation import json_response, negotiate

logger = logging.getLogger("wren.server")


def status_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


def log_level(exc: HTTPError) -> int:
    """Log level for an HTTP error: client mistakes are warnings, throttling is info."""
    if isinstance(exc, (BadRequest, NotFound, MethodNotAllowed)):
        return logging.WARNING
    if isinstance(exc, RateLimitExceeded):
        return logging.INFO
    return logging.DEBUG


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    return negotiate(result)


def default_error_response(
    request: Request,
    status: int,
    message: str,
    *,
    debug_info: dict[str, Any] | None = None,
) -> Response:
    """Build the default error body for *status*."""
    if request.wants_json:
        payload: dict[str, Any] = {"message": message}
        if debug_info:
            payload.update(debug_info)
        return json_response(payload, status=status)

    lines = [f"{status} {status_phrase(status)}", "", message]
    if debug_info:
        lines.append("")
        for key, value in debug_info.items():
            if isinstance(value, list):
                lines.append(f"{key}:")
                lines.extend(f"  {item}" for item in value)
            else:
                lines.append(f"{key}: {value}")
    return Response(body="\n".join(lines), status=status, content_type="text/plain; charset=utf-8")


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.log(log_level(exc), "%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Preserve the HTTP status from the exception unless the handler
        # explicitly returned a Response with its own status
        if response.status == 200:
            response = response.with_status(exc.status)
        return response.with_headers(exc.headers)

    message = exc.detail or status_phrase(exc.status)
    debug_info = {"exception": type(exc).__name__} if debug else None
    response = default_error_response(request, exc.status, message, debug_info=debug_info)
    return response.with_headers(exc.headers)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(type(exc)) or error_handlers.get(500)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        if response.status == 200:
            response = response.with_status(500)
        return response

    if not debug:
        return default_error_response(request, 500, status_phrase(500))

    debug_info = {
        "exception": f"{type(exc).__module__}.{type(exc).__qualname__}",
        "trace": "".join(traceback.format_exception(exc)).splitlines(),
    }
    return default_error_response(request, 500, str(exc) or status_phrase(500), debug_info=debug_info)
