"""Routing — ordered route table with compiled, anchored path matchers.

Routes are registered during setup and compiled into an immutable
table when the app freezes. Matching scans the table in registration
order, so the first registered template wins ties.
"""

from wren.routing.compiler import compile_path, match_path, param_names
from wren.routing.route import RateLimit, Route, RouteHandle, RouteMatch
from wren.routing.router import Router, normalize_path

__all__ = [
    "RateLimit",
    "Route",
    "RouteHandle",
    "RouteMatch",
    "Router",
    "compile_path",
    "match_path",
    "normalize_path",
    "param_names",
]
