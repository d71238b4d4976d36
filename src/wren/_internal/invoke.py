"""Invoke helpers — call sync or async callables uniformly.

Handlers, controller methods, middleware and error handlers can all be
``def`` or ``async def``. This module keeps the sync/async check in
exactly one place.

Usage::

    from wren._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* and await the result if it's awaitable."""
    result = target(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
