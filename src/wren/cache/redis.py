"""Redis-backed cache for counters shared across processes.

Requires the optional ``redis`` package (``pip install wren[redis]``).
"""

from typing import Any

from wren.errors import ConfigurationError


class RedisCache:
    """Cache over a ``redis.asyncio`` client.

    Pass an existing client, or a URL to build one::

        cache = RedisCache(url="redis://localhost:6379/0")

    ``incr`` runs INCR and EXPIRE NX in one MULTI/EXEC transaction,
    so the window starts at the first hit and is never extended.
    EXPIRE NX needs Redis 7 or newer.
    """

    __slots__ = ("_client",)

    def __init__(self, client: Any = None, *, url: str | None = None) -> None:
        if client is None:
            if url is None:
                msg = "RedisCache needs either a client or a url"
                raise ConfigurationError(msg)
            try:
                from redis.asyncio import Redis
            except ImportError:
                msg = (
                    "RedisCache requires the 'redis' package. "
                    "Install it with: pip install wren[redis]"
                )
                raise ConfigurationError(msg) from None
            client = Redis.from_url(url, decode_responses=True)
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    async def get(self, key: str) -> Any:
        return await self._client.get(key)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if ttl is None:
            await self._client.set(key, value)
        else:
            await self._client.set(key, value, px=max(1, int(ttl * 1000)))

    async def incr(self, key: str, ttl: float) -> int:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, max(1, int(ttl)), nx=True)
            count, _ = await pipe.execute()
        return int(count)

    async def ttl(self, key: str) -> float | None:
        remaining = await self._client.ttl(key)
        # -2: no such key, -1: no expiry
        if remaining is None or remaining < 0:
            return None
        return float(remaining)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()
