"""Request body size limit."""

from wren.errors import PayloadTooLarge
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class PostSizeLimit:
    """Reject bodies whose declared ``Content-Length`` exceeds *max_bytes*.

    Only the header is checked; nothing is read. Requests without a
    ``Content-Length`` (chunked uploads) pass through.

    The app enforces ``AppConfig.max_content_length`` with this check
    before the body is read into ``request.inputs``. Route middleware
    runs after that read, so an instance attached to a route only turns
    an oversized declared length into a 413; it does not bound memory::

        app.post("/avatar", upload).middleware(PostSizeLimit(512 * 1024))
    """

    __slots__ = ("max_bytes",)

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes

    def check(self, request: Request) -> None:
        """Raise ``PayloadTooLarge`` if *request* declares too large a body."""
        if request.method not in _BODY_METHODS and request.original_method not in _BODY_METHODS:
            return
        length = request.content_length
        if length is not None and length > self.max_bytes:
            msg = f"Request body of {length} bytes exceeds the {self.max_bytes} byte limit."
            raise PayloadTooLarge(msg)

    async def __call__(self, request: Request, next: Next) -> Response:
        self.check(request)
        return await next(request)
