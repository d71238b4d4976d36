"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    PostSizeLimit -- Reject request bodies over a byte limit (413)
    SecurityHeadersMiddleware -- Content-Security-Policy, X-Frame-Options, nosniff, Referrer-Policy
"""

from wren.middleware.pipeline import compose
from wren.middleware.post_size import PostSizeLimit
from wren.middleware.protocol import Middleware, Next
from wren.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
    build_csp,
)

__all__ = [
    "Middleware",
    "Next",
    "PostSizeLimit",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "build_csp",
    "compose",
]
