"""Query string parameters, parsed once from the raw ASGI bytes."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Read-only view of a query string.

    A key maps to its first value, which is what ``Request.inputs``
    receives. Repeated keys (``?tag=a&tag=b``) stay available through
    ``get_list``.
    """

    __slots__ = ("_first", "_pairs", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
        first: dict[str, str] = {}
        for key, value in pairs:
            first.setdefault(key, value)
        self._raw = query_string
        self._pairs = tuple(pairs)
        self._first = first

    def __getitem__(self, key: str) -> str:
        return self._first[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._first)

    def __len__(self) -> int:
        return len(self._first)

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        return [value for name, value in self._pairs if name == key]

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw
