"""Tests for wren.http.request — frozen Request with async body access."""

import json

import pytest

from wren.http.request import Request
from wren.handlers import FunctionHandler
from wren.routing.route import RouteHandle


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def _make_receive(*bodies: bytes):
    """Create an ASGI receive callable that yields bodies."""
    messages = []
    for i, body in enumerate(bodies):
        is_last = i == len(bodies) - 1
        messages.append({"type": "http.request", "body": body, "more_body": not is_last})
    if not messages:
        messages.append({"type": "http.request", "body": b"", "more_body": False})
    it = iter(messages)

    async def receive():
        return next(it)

    return receive


def _form_scope(body: bytes, method: str = "POST", query: bytes = b"") -> dict[str, object]:
    return _make_scope(
        method=method,
        query_string=query,
        headers=[
            (b"content-type", b"application/x-www-form-urlencoded"),
            (b"content-length", str(len(body)).encode()),
        ],
    )


class TestRequestFromASGI:
    def test_basic_fields(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST", path="/users"), _make_receive())
        assert req.method == "POST"
        assert req.original_method == "POST"
        assert req.path == "/users"
        assert req.server == ("localhost", 8000)
        assert req.client == ("127.0.0.1", 54321)
        assert req.route is None

    def test_raw_path_kept_encoded(self) -> None:
        scope = _make_scope(path="/files/a/b", raw_path=b"/files/a%2Fb")
        req = Request.from_asgi(scope, _make_receive())
        assert req.path == "/files/a/b"
        assert req.raw_path == "/files/a%2Fb"

    def test_raw_path_derived_when_missing(self) -> None:
        scope = _make_scope(path="/hello world", raw_path=None)
        req = Request.from_asgi(scope, _make_receive())
        assert req.raw_path == "/hello%20world"

    def test_query_and_url(self) -> None:
        req = Request.from_asgi(_make_scope(path="/s", query_string=b"q=x"), _make_receive())
        assert req.query["q"] == "x"
        assert req.url == "/s?q=x"

    def test_content_length(self) -> None:
        scope = _make_scope(headers=[(b"content-length", b"12")])
        assert Request.from_asgi(scope, _make_receive()).content_length == 12
        scope = _make_scope(headers=[(b"content-length", b"bogus")])
        assert Request.from_asgi(scope, _make_receive()).content_length is None


class TestClientIp:
    def test_peer_address(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive())
        assert req.client_ip == "127.0.0.1"

    def test_unknown_without_peer(self) -> None:
        req = Request.from_asgi(_make_scope(client=None), _make_receive())
        assert req.client_ip == "unknown"

    def test_forwarded_header_first_hop(self) -> None:
        scope = _make_scope(headers=[(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1")])
        req = Request.from_asgi(scope, _make_receive(), forwarded_ip_header="X-Forwarded-For")
        assert req.client_ip == "203.0.113.7"

    def test_forwarded_header_ignored_unless_configured(self) -> None:
        scope = _make_scope(headers=[(b"x-forwarded-for", b"203.0.113.7")])
        req = Request.from_asgi(scope, _make_receive())
        assert req.client_ip == "127.0.0.1"


class TestBody:
    async def test_body_from_chunks(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive(b"hel", b"lo"))
        assert await req.body() == b"hello"
        # Cached: second read does not touch receive again
        assert await req.body() == b"hello"

    async def test_json(self) -> None:
        payload = json.dumps({"a": 1}).encode()
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive(payload))
        assert await req.json() == {"a": 1}

    async def test_text(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive("héllo".encode()))
        assert await req.text() == "héllo"


class TestWantsJson:
    @pytest.mark.parametrize(
        ("accept", "expected"),
        [
            ("application/json", True),
            ("application/problem+json", True),
            ("text/html,application/xhtml+xml", False),
            ("", False),
        ],
    )
    def test_accept_header(self, accept: str, expected: bool) -> None:
        scope = _make_scope(headers=[(b"accept", accept.encode())])
        assert Request.from_asgi(scope, _make_receive()).wants_json is expected


class TestWithInputs:
    async def test_query_only_for_get(self) -> None:
        req = Request.from_asgi(_make_scope(query_string=b"page=2&q=x"), _make_receive())
        req = await req.with_inputs()
        assert req.inputs == {"page": "2", "q": "x"}
        assert req.input("page") == "2"
        assert req.input("missing", "d") == "d"

    async def test_body_overrides_query(self) -> None:
        body = b"name=body"
        req = Request.from_asgi(_form_scope(body, query=b"name=query&x=1"), _make_receive(body))
        req = await req.with_inputs()
        assert req.inputs == {"name": "body", "x": "1"}

    async def test_json_body(self) -> None:
        body = json.dumps({"title": "Hi", "count": 3}).encode()
        scope = _make_scope(method="PUT", headers=[(b"content-type", b"application/json")])
        req = await Request.from_asgi(scope, _make_receive(body)).with_inputs()
        assert req.inputs == {"title": "Hi", "count": 3}

    async def test_invalid_json_body_ignored(self) -> None:
        scope = _make_scope(method="POST", headers=[(b"content-type", b"application/json")])
        req = await Request.from_asgi(scope, _make_receive(b"{nope")).with_inputs()
        assert req.inputs == {}

    async def test_method_override_on_post(self) -> None:
        body = b"_method=delete"
        req = await Request.from_asgi(_form_scope(body), _make_receive(body)).with_inputs()
        assert req.method == "DELETE"
        assert req.original_method == "POST"

    async def test_unknown_override_ignored(self) -> None:
        body = b"_method=BREW"
        req = await Request.from_asgi(_form_scope(body), _make_receive(body)).with_inputs()
        assert req.method == "POST"

    async def test_override_only_applies_to_post(self) -> None:
        req = Request.from_asgi(_make_scope(query_string=b"_method=DELETE"), _make_receive())
        req = await req.with_inputs()
        assert req.method == "GET"

    @pytest.mark.parametrize("method", ["HEAD", "OPTIONS", "head"])
    async def test_override_outside_allowed_set_stays_post(self, method: str) -> None:
        body = f"_method={method}".encode()
        req = await Request.from_asgi(_form_scope(body), _make_receive(body)).with_inputs()
        assert req.method == "POST"
        assert req.original_method == "POST"

    async def test_undecodable_form_body_ignored(self) -> None:
        body = b"name=\xff\xfe"
        req = Request.from_asgi(_form_scope(body, query=b"page=2"), _make_receive(body))
        req = await req.with_inputs()
        assert req.inputs == {"page": "2"}
        assert req.method == "POST"

    async def test_multipart_without_boundary_ignored(self) -> None:
        scope = _make_scope(
            method="POST",
            headers=[(b"content-type", b"multipart/form-data")],
        )
        req = await Request.from_asgi(scope, _make_receive(b"--x\r\n")).with_inputs()
        assert req.inputs == {}


class TestWithRoute:
    async def test_path_params_take_precedence(self) -> None:
        req = Request.from_asgi(_make_scope(query_string=b"id=query"), _make_receive())
        req = await req.with_inputs()
        handler = FunctionHandler.compile(lambda: None)
        route = RouteHandle("GET", "/users/{id}", handler).build(handler, default_window=60)

        bound = req.with_route(route, {"id": "5"})
        assert bound.inputs["id"] == "5"
        assert bound.path_params == {"id": "5"}
        assert bound.route is route
