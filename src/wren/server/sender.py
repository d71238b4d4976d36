"""Writes a wren Response to the ASGI ``send`` callable."""

from wren._internal.asgi import Send
from wren.http.response import Response

# 1xx, 204 and 304 responses never carry a body
_NO_BODY_STATUSES = frozenset({204, 304})


def _body_allowed(status: int) -> bool:
    return status >= 200 and status not in _NO_BODY_STATUSES


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """ASGI header pairs for *response*: content type, its own headers, then length."""
    encoded = [(b"content-type", response.content_type.encode("latin-1"))]
    encoded.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
    )
    encoded.append((b"content-length", str(content_length).encode("ascii")))
    return encoded


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send *response* as one start message and one body message.

    ``Content-Length`` describes the body a GET would receive, so a HEAD
    response (*head*) reports that length and sends no bytes.
    """
    body = response.body_bytes if _body_allowed(response.status) else b""
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
