"""Tests for wren.config — AppConfig frozen dataclass."""

import pytest

from wren.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.debug is False
        assert cfg.app_path == ""
        assert cfg.base_url == ""
        assert cfg.controller_namespace == ""
        assert cfg.rate_limit_prefix == "rate_limit:"
        assert cfg.default_rate_window == 60
        assert cfg.forwarded_ip_header is None
        assert cfg.max_content_length == 16 * 1024 * 1024

    def test_override(self) -> None:
        cfg = AppConfig(debug=True, app_path="/shop", base_url="https://example.com")

        assert cfg.debug is True
        assert cfg.app_path == "/shop"
        assert cfg.base_url == "https://example.com"

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.debug = True  # type: ignore[misc]
