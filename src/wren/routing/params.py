"""Path parameter converters.

A template segment may narrow its capture with a converter suffix, e.g.
``{id:int}``. Converters only shape the pattern; captured values are
always handed to handlers as strings.
"""


# Regex fragment matched by each converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}
