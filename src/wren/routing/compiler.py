"""Path template compiler.

Turns a human-authored template like ``/posts/{category}/{slug}`` into an
anchored regex with one named group per placeholder::

    compile_path("/users/{id}")        -> ^/users/(?P<id>[^/]+)$
    compile_path("/users/{id:int}")    -> ^/users/(?P<id>\\d+)$
    compile_path("/files/{rest:path}") -> ^/files/(?P<rest>.+)$

Literal text is escaped, so ``.`` or ``+`` in a template match only
themselves. Templates are matched against the still percent-encoded
request path; captured values are decoded by the router.
"""

import re
from urllib.parse import quote

from wren.errors import ConfigurationError
from wren.routing.params import CONVERTERS

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
_FLASK_STYLE = re.compile(r"<[^<>/]+>")

# Characters left as-is when a literal segment is percent-encoded
_SAFE = "/:@!$&'()*+,;=-._~"


def normalize_template(template: str) -> str:
    """Ensure a leading ``/`` and drop a trailing one (except for root)."""
    if not template.startswith("/"):
        template = f"/{template}"
    if template != "/":
        template = template.rstrip("/") or "/"
    return template


def param_names(template: str) -> tuple[str, ...]:
    """Return placeholder names in the order they appear."""
    return tuple(m.group(1).partition(":")[0] for m in _PLACEHOLDER.finditer(template))


def compile_path(template: str) -> re.Pattern[str]:
    """Compile *template* into an anchored, full-match pattern.

    Raises ``ConfigurationError`` for duplicate parameter names, unknown
    converters, invalid identifiers, stray braces, and ``<param>`` syntax.
    These are programmer errors caught at registration time.
    """
    if _FLASK_STYLE.search(template):
        msg = (
            f"Route path {template!r} uses <param> placeholders. "
            "Use {param} instead, e.g. /users/{id}."
        )
        raise ConfigurationError(msg)

    template = normalize_template(template)
    parts: list[str] = []
    seen: set[str] = set()
    position = 0

    for m in _PLACEHOLDER.finditer(template):
        parts.append(_literal(template, template[position : m.start()]))
        name, _, converter = m.group(1).partition(":")
        converter = converter or "str"

        if not name.isidentifier():
            msg = f"Invalid parameter name {name!r} in route path {template!r}"
            raise ConfigurationError(msg)
        if converter not in CONVERTERS:
            known = ", ".join(sorted(CONVERTERS))
            msg = (
                f"Unknown converter {converter!r} for parameter {name!r} in "
                f"route path {template!r}. Known converters: {known}"
            )
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Duplicate parameter {name!r} in route path {template!r}"
            raise ConfigurationError(msg)

        seen.add(name)
        parts.append(f"(?P<{name}>{CONVERTERS[converter]})")
        position = m.end()

    parts.append(_literal(template, template[position:]))
    return re.compile("^" + "".join(parts) + "$")


def match_path(matcher: re.Pattern[str], path: str) -> dict[str, str] | None:
    """Match *path* in full; return raw captures by name or ``None``."""
    m = matcher.fullmatch(path)
    if m is None:
        return None
    return m.groupdict()


def _literal(template: str, text: str) -> str:
    if "{" in text or "}" in text:
        msg = f"Unbalanced brace in route path {template!r}"
        raise ConfigurationError(msg)
    return re.escape(quote(text, safe=_SAFE))
