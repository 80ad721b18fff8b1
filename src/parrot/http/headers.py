"""Immutable, case-insensitive HTTP headers built from ASGI byte pairs."""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    Names are lower-cased once at construction. ``__getitem__`` returns
    the first value; ``get_list`` returns all of them.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        index: dict[str, list[str]] = {}
        for name, value in raw:
            index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._raw = raw
        self._index = index

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        return cls(
            tuple((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())
        )

    def __getitem__(self, key: str) -> str:
        return self._index[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({ {k: v[0] for k, v in self._index.items()}!r})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Raw header byte pairs for ASGI compatibility."""
        return self._raw
