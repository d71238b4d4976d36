"""Cache protocol."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cache(Protocol):
    """Async key/value store with per-key expiry.

    ``incr`` must be atomic: concurrent callers each observe a distinct
    count. The expiry passed to ``incr`` applies only when the key is
    created, so a counter's window is fixed by its first hit.
    """

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    async def incr(self, key: str, ttl: float) -> int: ...

    async def ttl(self, key: str) -> float | None: ...

    async def delete(self, key: str) -> None: ...
