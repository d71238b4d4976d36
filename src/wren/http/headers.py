"""Case-insensitive request headers."""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers from the ASGI scope.

    Names are lowercased and values decoded (latin-1) once, when the
    request is built. Lookups return the first value of a header;
    ``get_list`` returns every value of a repeated one.
    """

    __slots__ = ("_items", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._items = tuple(
            (name.decode("latin-1").lower(), value.decode("latin-1")) for name, value in raw
        )

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build headers from a plain ``str -> str`` mapping."""
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            )
        )

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._items:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name == wanted for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._items))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._items))

    def get_list(self, key: str) -> list[str]:
        """Every value of header *key*, in the order received."""
        wanted = key.lower()
        return [value for name, value in self._items if name == wanted]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Header byte pairs as the server sent them."""
        return self._raw
