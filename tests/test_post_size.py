"""Tests for PostSizeLimit and the app-wide max_content_length check."""

import pytest

from wren.app import App
from wren.config import AppConfig
from wren.errors import PayloadTooLarge
from wren.http.headers import Headers
from wren.http.query import QueryParams
from wren.http.request import Request
from wren.middleware.post_size import PostSizeLimit
from wren.testing import TestClient


def _request(method: str, length: int | None) -> Request:
    headers = {} if length is None else {"content-length": str(length)}
    return Request(
        method=method,
        original_method=method,
        path="/",
        headers=Headers.from_dict(headers),
        query=QueryParams(b""),
    )


class TestCheck:
    def test_within_limit(self) -> None:
        PostSizeLimit(10).check(_request("POST", 10))

    def test_over_limit(self) -> None:
        with pytest.raises(PayloadTooLarge) as exc_info:
            PostSizeLimit(10).check(_request("POST", 11))
        assert exc_info.value.status == 413

    def test_missing_length_passes(self) -> None:
        PostSizeLimit(10).check(_request("PUT", None))

    def test_get_not_checked(self) -> None:
        PostSizeLimit(10).check(_request("GET", 1000))

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_body_methods_checked(self, method: str) -> None:
        with pytest.raises(PayloadTooLarge):
            PostSizeLimit(1).check(_request(method, 2))


class TestAppLimit:
    async def test_oversized_body_rejected_before_handler(self) -> None:
        app = App(AppConfig(max_content_length=8))
        calls: list[str] = []

        @app.route("/upload", methods=["POST"])
        def upload():
            calls.append("handler")
            return "stored"

        async with TestClient(app) as client:
            response = await client.post("/upload", body=b"x" * 9)
        assert response.status == 413
        assert calls == []

    async def test_body_within_limit(self) -> None:
        app = App(AppConfig(max_content_length=8))

        @app.route("/upload", methods=["POST"])
        def upload():
            return "stored"

        async with TestClient(app) as client:
            response = await client.post("/upload", body=b"x" * 8)
        assert response.status == 200

    async def test_zero_disables_check(self) -> None:
        app = App(AppConfig(max_content_length=0))

        @app.route("/upload", methods=["POST"])
        def upload():
            return "stored"

        async with TestClient(app) as client:
            response = await client.post("/upload", body=b"x" * 100)
        assert response.status == 200

    async def test_route_middleware_rejects_on_declared_length(self) -> None:
        app = App()
        app.post("/avatar", lambda: "saved").middleware(PostSizeLimit(4))

        async with TestClient(app) as client:
            small = await client.post("/avatar", body=b"abc")
            large = await client.post("/avatar", body=b"abcde")
        assert small.status == 200
        assert large.status == 413
