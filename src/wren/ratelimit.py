"""Fixed-window rate counter.

One counter per (route, client) pair, stored in a ``Cache`` under
``{prefix}{route name or path}:{client}``. The counter's expiry is the
window: it is set when the first hit creates the key and never extended.
"""

import logging
import math
from dataclasses import dataclass

from wren.cache.protocol import Cache
from wren.errors import RateLimitExceeded
from wren.routing.route import Route

logger = logging.getLogger("wren.ratelimit")


@dataclass(frozen=True, slots=True)
class RateLimitStatus:
    """Outcome of an allowed hit."""

    limit: int
    remaining: int

    def headers(self) -> tuple[tuple[str, str], ...]:
        return (
            ("X-RateLimit-Limit", str(self.limit)),
            ("X-RateLimit-Remaining", str(self.remaining)),
        )


class RateLimiter:
    """Counts hits per route and client against the route's ``RateLimit``."""

    __slots__ = ("_cache", "_prefix")

    def __init__(self, cache: Cache, prefix: str = "rate_limit:") -> None:
        self._cache = cache
        self._prefix = prefix

    @property
    def cache(self) -> Cache:
        return self._cache

    def key(self, route: Route, client: str) -> str:
        return f"{self._prefix}{route.key}:{client}"

    async def hit(self, route: Route, client: str) -> RateLimitStatus | None:
        """Record one hit by *client* on *route*.

        Returns ``None`` for routes without a limit (or a limit of 0).

        Raises:
            RateLimitExceeded: The hit is over the budget for this window.
        """
        rate_limit = route.rate_limit
        if rate_limit is None or rate_limit.unlimited:
            return None

        key = self.key(route, client)
        count = await self._cache.incr(key, rate_limit.window_seconds)
        limit = rate_limit.max_requests

        if count > limit:
            remaining_ttl = await self._cache.ttl(key)
            if remaining_ttl is None or remaining_ttl <= 0:
                retry_after = rate_limit.window_seconds
            else:
                retry_after = max(1, math.ceil(remaining_ttl))
            logger.info(
                "Rate limit exceeded for %s on %s %s (%d/%d, retry in %ds)",
                client,
                route.method,
                route.path,
                count,
                limit,
                retry_after,
            )
            raise RateLimitExceeded(retry_after, limit)

        return RateLimitStatus(limit=limit, remaining=max(0, limit - count))
