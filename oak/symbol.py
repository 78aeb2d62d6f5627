from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Symbol:
    """An interned name, distinct from a ``str`` holding the same text.

    ``Symbol("foo") != "foo"`` and the two may coexist as keys of one dict.
    """

    name: str

    def __post_init__(self) -> None:
        if type(self.name) is not str:
            raise TypeError(f"Symbol name must be str, got {type(self.name).__name__}")

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"
