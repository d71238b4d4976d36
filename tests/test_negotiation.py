"""Tests for wren.server.negotiation — return value to Response mapping."""

import pytest

from wren.http.response import Redirect, Response
from wren.server.negotiation import json_response, negotiate


class TestNegotiate:
    def test_response_passthrough(self) -> None:
        r = Response("x", status=418)
        assert negotiate(r) is r

    def test_str_is_html(self) -> None:
        r = negotiate("<h1>Hi</h1>")
        assert r.status == 200
        assert r.content_type == "text/html; charset=utf-8"
        assert r.text == "<h1>Hi</h1>"

    def test_bytes_is_octet_stream(self) -> None:
        r = negotiate(b"\x00\x01")
        assert r.content_type == "application/octet-stream"
        assert r.body_bytes == b"\x00\x01"

    def test_dict_is_json(self) -> None:
        r = negotiate({"id": 5})
        assert r.content_type == "application/json; charset=utf-8"
        assert r.json() == {"id": 5}

    def test_list_is_json(self) -> None:
        assert negotiate([1, 2]).json() == [1, 2]

    def test_none_is_204(self) -> None:
        r = negotiate(None)
        assert r.status == 204
        assert r.body_bytes == b""

    def test_redirect(self) -> None:
        r = negotiate(Redirect("/next", status=303, headers=(("X-A", "1"),)))
        assert r.status == 303
        assert r.header("Location") == "/next"
        assert r.header("X-A") == "1"

    def test_tuple_with_status(self) -> None:
        r = negotiate(({"created": True}, 201))
        assert r.status == 201
        assert r.json() == {"created": True}

    def test_tuple_with_status_and_headers(self) -> None:
        r = negotiate(("ok", 202, {"X-Job": "7"}))
        assert r.status == 202
        assert r.header("X-Job") == "7"

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert int"):
            negotiate(42)


class TestJsonResponse:
    def test_status(self) -> None:
        r = json_response({"message": "x"}, status=404)
        assert r.status == 404
        assert r.json() == {"message": "x"}

    def test_non_serializable_falls_back_to_str(self) -> None:
        from datetime import date

        assert json_response({"d": date(2024, 1, 2)}).json() == {"d": "2024-01-02"}
