"""Security headers middleware: Content-Security-Policy, X-Frame-Options, nosniff, Referrer-Policy.

Headers are applied only to text/html responses. JSON, plain text and
binary responses pass through untouched.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias

from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next

# Directive value: a list of sources, a bare flag (True), a literal string,
# or something empty (None, False, "", []) to leave the directive out.
DirectiveValue: TypeAlias = Sequence[str] | str | bool | None

DEFAULT_CSP_DIRECTIVES: Mapping[str, DirectiveValue] = MappingProxyType({
    "default-src": ["'self'"],
    "script-src": ["'self'"],
    "style-src": ["'self'"],
    "img-src": ["'self'", "data:"],
    "connect-src": ["'self'"],
    "font-src": ["'self'"],
    "object-src": ["'none'"],
    "media-src": ["'self'"],
    "frame-src": ["'self'"],
    "frame-ancestors": ["'self'"],
    "form-action": ["'self'"],
    "base-uri": ["'self'"],
    "report-uri": None,
})


def build_csp(directives: Mapping[str, DirectiveValue]) -> str:
    """Render a directive mapping as a Content-Security-Policy value.

    ::

        build_csp({"default-src": ["'self'"], "upgrade-insecure-requests": True})
        # "default-src 'self'; upgrade-insecure-requests"
    """
    parts: list[str] = []
    for directive, sources in directives.items():
        if not sources:
            continue
        if sources is True:
            parts.append(directive)
        elif isinstance(sources, str):
            parts.append(f"{directive} {sources}")
        else:
            parts.append(f"{directive} {' '.join(sources)}")
    return "; ".join(parts)


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    ``csp_directives`` is rendered with ``build_csp``. Set ``csp_enabled``
    to False to send no Content-Security-Policy at all.
    """

    csp_enabled: bool = True
    csp_directives: Mapping[str, DirectiveValue] = field(
        default_factory=lambda: dict(DEFAULT_CSP_DIRECTIVES)
    )
    x_frame_options: str = "DENY"
    x_content_type_options: str = "nosniff"
    referrer_policy: str = "strict-origin-when-cross-origin"
    strict_transport_security: str | None = None

    @property
    def content_security_policy(self) -> str:
        if not self.csp_enabled:
            return ""
        return build_csp(self.csp_directives)


def _add_headers(response: Response, config: SecurityHeadersConfig, csp: str) -> Response:
    secured = (
        response.with_header("X-Frame-Options", config.x_frame_options)
        .with_header("X-Content-Type-Options", config.x_content_type_options)
        .with_header("Referrer-Policy", config.referrer_policy)
    )
    if csp:
        # A second CSP header would intersect with the first; replace instead
        secured = secured.without_header("Content-Security-Policy").with_header(
            "Content-Security-Policy", csp
        )
    if config.strict_transport_security:
        secured = secured.with_header(
            "Strict-Transport-Security", config.strict_transport_security
        )
    return secured


class SecurityHeadersMiddleware:
    """Add security headers to HTML responses.

    Usage::

        from wren.middleware import SecurityHeadersMiddleware

        app.add_middleware(SecurityHeadersMiddleware())

    Or with custom directives::

        from wren.middleware.security_headers import SecurityHeadersConfig

        app.add_middleware(SecurityHeadersMiddleware(SecurityHeadersConfig(
            csp_directives={
                "default-src": ["'self'"],
                "script-src": ["'self'", "https://cdn.example.com"],
                "upgrade-insecure-requests": True,
            },
        )))
    """

    __slots__ = ("config", "csp")

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()
        # Rendered once; the directive mapping does not change per request
        self.csp = self.config.content_security_policy

    async def __call__(self, request: Request, next: Next) -> Response:
        response = await next(request)
        if not response.content_type.startswith("text/html"):
            return response
        return _add_headers(response, self.config, self.csp)
