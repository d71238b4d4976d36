"""Middleware pipeline composition.

``compose`` nests middleware around a terminal step so that they run in
attachment order on the way in and in reverse order on the way out::

    compose([a, b], handler)(request)
    # a before -> b before -> handler -> b after -> a after

A middleware that returns without calling ``next`` short-circuits every
step inside it.
"""

from collections.abc import Callable, Sequence
from typing import Any

from wren._internal.invoke import invoke
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next


def compose(middleware: Sequence[Callable[..., Any]], terminal: Next) -> Next:
    """Wrap *terminal* in *middleware*, first entry outermost."""
    handler = terminal
    for mw in reversed(middleware):
        handler = _link(mw, handler)
    return handler


def _link(mw: Callable[..., Any], next_step: Next) -> Next:
    async def step(request: Request) -> Response:
        return await invoke(mw, request, next_step)

    return step
