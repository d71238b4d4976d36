"""ASGI handler — translates ASGI scope/messages to wren types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, runs the global middleware pipeline around the
app's dispatch, turns errors into responses, and sends the Response back
through ASGI send().
"""

from collections.abc import Awaitable, Callable, Sequence
from contextvars import Token
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren.context import g, rate_limit_var, request_var, route_var
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.pipeline import compose
from wren.middleware.post_size import PostSizeLimit
from wren.server.errors import handle_http_error, handle_internal_error
from wren.server.negotiation import negotiate
from wren.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatch: Callable[[Request], Awaitable[Response]],
    middleware: Sequence[Callable[..., Any]],
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
    forwarded_ip_header: str | None = None,
    max_content_length: int = 0,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, forwarded_ip_header=forwarded_ip_header)

    # Set request context vars (reset after dispatch)
    token: Token[Request] = request_var.set(request)
    route_token = route_var.set(None)
    rate_token = rate_limit_var.set(None)
    g_token = g._open()

    try:
        # Size check runs on the declared length, before the body is read
        if max_content_length:
            PostSizeLimit(max_content_length).check(request)

        request = await request.with_inputs()
        request_var.set(request)

        handler = compose(middleware, dispatch)
        response = negotiate(await handler(request))

    except HTTPError as exc:
        response = _with_rate_headers(await handle_http_error(exc, request, error_handlers, debug))
    except Exception as exc:
        response = _with_rate_headers(
            await handle_internal_error(exc, request, error_handlers, debug)
        )
    finally:
        g._close(g_token)
        rate_limit_var.reset(rate_token)
        route_var.reset(route_token)
        request_var.reset(token)

    await send_response(response, send, head=request.original_method == "HEAD")


def _with_rate_headers(response: Response) -> Response:
    status = rate_limit_var.get()
    if status is None:
        return response
    return response.with_headers(status.headers())
