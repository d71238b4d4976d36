"""Key/value caches backing the rate counter.

``MemoryCache`` is the in-process default. ``RedisCache`` shares counters
across worker processes and needs the optional ``redis`` dependency
(``pip install wren[redis]``).
"""

from wren.cache.memory import MemoryCache
from wren.cache.protocol import Cache

__all__ = ["Cache", "MemoryCache", "RedisCache"]


def __getattr__(name: str) -> object:
    if name == "RedisCache":
        from wren.cache.redis import RedisCache

        return RedisCache
    msg = f"module 'wren.cache' has no attribute {name!r}"
    raise AttributeError(msg)
