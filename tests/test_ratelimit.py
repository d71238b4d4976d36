"""Tests for wren.ratelimit — fixed-window counters per route and client."""

import pytest

from wren.cache import MemoryCache
from wren.errors import RateLimitExceeded
from wren.handlers import FunctionHandler
from wren.ratelimit import RateLimiter, RateLimitStatus
from wren.routing.compiler import compile_path
from wren.routing.route import RateLimit, Route


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _handler() -> str:
    return "ok"


def _route(
    path: str = "/login",
    *,
    limit: RateLimit | None = None,
    name: str | None = None,
) -> Route:
    return Route(
        method="POST",
        path=path,
        matcher=compile_path(path),
        handler=FunctionHandler.compile(_handler),
        name=name,
        rate_limit=limit,
    )


class TestRateLimiter:
    async def test_no_limit_returns_none(self) -> None:
        limiter = RateLimiter(MemoryCache())
        assert await limiter.hit(_route(), "1.1.1.1") is None

    async def test_zero_limit_is_unlimited(self) -> None:
        cache = MemoryCache()
        limiter = RateLimiter(cache)
        route = _route(limit=RateLimit(0, 60))
        for _ in range(5):
            assert await limiter.hit(route, "1.1.1.1") is None
        assert len(cache) == 0

    async def test_remaining_counts_down(self) -> None:
        limiter = RateLimiter(MemoryCache())
        route = _route(limit=RateLimit(3, 60))
        assert await limiter.hit(route, "1.1.1.1") == RateLimitStatus(3, 2)
        assert await limiter.hit(route, "1.1.1.1") == RateLimitStatus(3, 1)
        assert await limiter.hit(route, "1.1.1.1") == RateLimitStatus(3, 0)

    async def test_exceeded_after_max(self) -> None:
        limiter = RateLimiter(MemoryCache())
        route = _route(limit=RateLimit(2, 60))
        await limiter.hit(route, "1.1.1.1")
        await limiter.hit(route, "1.1.1.1")
        with pytest.raises(RateLimitExceeded) as exc_info:
            await limiter.hit(route, "1.1.1.1")
        exc = exc_info.value
        assert exc.status == 429
        assert exc.limit == 2
        assert exc.retry_after == 60
        assert ("X-RateLimit-Remaining", "0") in exc.headers
        assert ("Retry-After", "60") in exc.headers

    async def test_retry_after_is_remaining_window(self) -> None:
        clock = _Clock()
        limiter = RateLimiter(MemoryCache(clock=clock))
        route = _route(limit=RateLimit(1, 60))
        await limiter.hit(route, "1.1.1.1")
        clock.now = 45.5
        with pytest.raises(RateLimitExceeded) as exc_info:
            await limiter.hit(route, "1.1.1.1")
        assert exc_info.value.retry_after == 15

    async def test_window_reset_gives_fresh_counter(self) -> None:
        clock = _Clock()
        limiter = RateLimiter(MemoryCache(clock=clock))
        route = _route(limit=RateLimit(2, 60))
        await limiter.hit(route, "1.1.1.1")
        await limiter.hit(route, "1.1.1.1")
        with pytest.raises(RateLimitExceeded):
            await limiter.hit(route, "1.1.1.1")
        clock.now = 61
        assert await limiter.hit(route, "1.1.1.1") == RateLimitStatus(2, 1)

    async def test_clients_counted_separately(self) -> None:
        limiter = RateLimiter(MemoryCache())
        route = _route(limit=RateLimit(1, 60))
        await limiter.hit(route, "1.1.1.1")
        assert await limiter.hit(route, "2.2.2.2") == RateLimitStatus(1, 0)

    async def test_routes_counted_separately(self) -> None:
        limiter = RateLimiter(MemoryCache())
        login = _route("/login", limit=RateLimit(1, 60))
        signup = _route("/signup", limit=RateLimit(1, 60))
        await limiter.hit(login, "1.1.1.1")
        assert await limiter.hit(signup, "1.1.1.1") is not None

    def test_key_uses_name_then_path(self) -> None:
        limiter = RateLimiter(MemoryCache(), prefix="rl:")
        assert limiter.key(_route("/login", name="auth.login"), "9.9.9.9") == "rl:auth.login:9.9.9.9"
        assert limiter.key(_route("/users/{id}"), "9.9.9.9") == "rl:/users/{id}:9.9.9.9"

    async def test_counter_stored_under_key(self) -> None:
        cache = MemoryCache()
        limiter = RateLimiter(cache)
        await limiter.hit(_route("/login", limit=RateLimit(5, 60)), "1.1.1.1")
        assert await cache.get("rate_limit:/login:1.1.1.1") == 1


class TestRateLimitStatus:
    def test_headers(self) -> None:
        assert RateLimitStatus(10, 7).headers() == (
            ("X-RateLimit-Limit", "10"),
            ("X-RateLimit-Remaining", "7"),
        )
