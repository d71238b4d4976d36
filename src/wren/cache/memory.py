"""In-process cache with lazy expiry."""

import threading
import time
from collections.abc import Callable
from typing import Any


class MemoryCache:
    """Dict-backed cache for a single process.

    Expired entries are dropped when next touched, and every write sweeps
    the whole table once ``sweep_interval`` seconds have passed since the
    last sweep, so keys that are never read again do not pile up.

    ``clock`` defaults to ``time.monotonic`` and can be replaced to step
    time in tests::

        now = [0.0]
        cache = MemoryCache(clock=lambda: now[0])
        await cache.incr("k", 60)
        now[0] = 61.0  # window over
    """

    __slots__ = ("_clock", "_data", "_lock", "_next_sweep", "_sweep_interval")

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        # key -> (value, expires_at or None)
        self._data: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> Any:
        with self._lock:
            entry = self._live(key)
            return None if entry is None else entry[0]

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            expires = None if ttl is None else now + ttl
            self._data[key] = (value, expires)

    async def incr(self, key: str, ttl: float) -> int:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            entry = self._live(key)
            if entry is None:
                self._data[key] = (1, now + ttl)
                return 1
            count = int(entry[0]) + 1
            self._data[key] = (count, entry[1])
            return count
    async def ttl(self, key: str) -> float | None:
        with self._lock:
            entry = self._live(key)
            if entry is None or entry[1] is None:
                return None
            return entry[1] - self._clock()

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    async def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def _live(self, key: str) -> tuple[Any, float | None] | None:
        # Caller holds the lock
        entry = self._data.get(key)
        if entry is None:
            return None
        expires = entry[1]
        if expires is not None and self._clock() >= expires:
            del self._data[key]
            return None
        return entry

    def _maybe_sweep(self, now: float) -> None:
        # Caller holds the lock
        if now < self._next_sweep:
            return
        expired = [
            key for key, (_, expires) in self._data.items() if expires is not None and now >= expires
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval
