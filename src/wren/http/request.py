"""Immutable HTTP request.

Frozen metadata with async body access, plus the combined input map
(query + body + path parameters) that handlers bind their arguments from.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from wren._internal.asgi import Receive
from wren.http.headers import Headers
from wren.http.query import QueryParams

if TYPE_CHECKING:
    from wren.http.forms import FormData
    from wren.routing.route import Route

# Methods an HTML form may ask for through the ``_method`` field.
# Kept equal to ``wren.routing.route.HTTP_METHODS``.
OVERRIDABLE_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.

    ``method`` is the effective method after the ``_method`` form override;
    ``original_method`` is what the client actually sent. ``inputs`` is the
    one mutable piece: the combined query/body/path-parameter map, shared
    by every middleware and the handler of a single request.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    raw_path: str = ""
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    client_ip: str = "unknown"
    original_method: str = ""
    inputs: dict[str, Any] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)
    route: Route | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for body and parsed form data
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    @property
    def wants_json(self) -> bool:
        """True if the Accept header asks for a JSON representation."""
        accept = self.headers.get("accept", "")
        return "/json" in accept or "+json" in accept

    # -- Lookups --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return a header value (case-insensitive), or *default*."""
        return self.headers.get(name, default)

    def input(self, name: str, default: Any = None) -> Any:
        """Return a value from the combined input map, or *default*."""
        return self.inputs.get(name, default)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Result is cached.

        Raises:
            ValueError: If Content-Type is not a form encoding.
            ConfigurationError: If multipart is needed but
                ``python-multipart`` is not installed.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from wren.http.forms import parse_form_data

        ct = self.content_type or "application/x-www-form-urlencoded"
        raw = await self.body()
        result = await parse_form_data(raw, ct)
        self._cache["_form"] = result
        return result

    # -- Input map --

    async def with_inputs(self) -> Request:
        """Return a copy whose ``inputs`` hold query and body values.

        Body fields override same-named query fields. A POST carrying an
        allowed ``_method`` value becomes a request with that method.
        """
        inputs: dict[str, Any] = dict(self.query)
        inputs.update(await self._body_inputs())

        method = self.method
        override = inputs.get("_method")
        if method == "POST" and isinstance(override, str):
            candidate = override.upper()
            if candidate in OVERRIDABLE_METHODS:
                method = candidate

        return replace(
            self,
            method=method,
            original_method=self.original_method or self.method,
            inputs=inputs,
        )

    async def _body_inputs(self) -> dict[str, Any]:
        if self.method not in _BODY_METHODS:
            return {}
        ct = (self.content_type or "").lower()
        if "json" in ct:
            raw = await self.body()
            if not raw:
                return {}
            try:
                data = await self.json()
            except ValueError:
                return {}
            return data if isinstance(data, dict) else {}
        if "application/x-www-form-urlencoded" in ct or "multipart/form-data" in ct:
            # Undecodable or unparseable bodies give no inputs, as for JSON
            try:
                form = await self.form()
            except ValueError:
                return {}
            return {key: form[key] for key in form}
        return {}

    def with_route(self, route: Route, path_params: dict[str, str]) -> Request:
        """Return a copy bound to the matched *route*.

        Path parameters are merged into the shared input map and take
        precedence over query and body values of the same name.
        """
        self.inputs.update(path_params)
        return replace(self, route=route, path_params=path_params)

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: dict[str, Any],
        receive: Receive,
        *,
        forwarded_ip_header: str | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        client_tuple = tuple(client) if client else None
        path = scope["path"]
        raw_path = scope.get("raw_path")
        if raw_path:
            raw = raw_path.decode("latin-1").split("?", 1)[0]
        else:
            raw = quote(path)
        return cls(
            method=scope["method"],
            original_method=scope["method"],
            path=path,
            raw_path=raw,
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=client_tuple,
            client_ip=_client_ip(headers, client_tuple, forwarded_ip_header),
            _receive=receive,
        )


def _client_ip(
    headers: Headers,
    client: tuple[str, int] | None,
    forwarded_ip_header: str | None,
) -> str:
    if forwarded_ip_header:
        raw = headers.get(forwarded_ip_header)
        if raw:
            # Comma-separated proxy chain, first hop is the client
            forwarded = raw.split(",")[0].strip()
            if forwarded:
                return forwarded
    if client:
        return client[0]
    return "unknown"
