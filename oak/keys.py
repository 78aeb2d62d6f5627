from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional

from .constants import IV_SIZE, KEY_NAME_PATTERN, KEY_SIZE
from .errors import InvalidCredentialError


_KEY_NAME_RE = re.compile(KEY_NAME_PATTERN)


def random_key() -> bytes:
    """Fresh secret suitable for Key()."""
    return os.urandom(KEY_SIZE)


def random_iv() -> bytes:
    return os.urandom(IV_SIZE)


@dataclass(frozen=True)
class Key:
    """A 256-bit AES key.

    The secret is never shown by repr() or str(), so a Key can appear in
    tracebacks and debug output without leaking.
    """

    key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if type(self.key) is not bytes:
            raise InvalidCredentialError("bad non-bytes key: ELIDED")
        if len(self.key) != KEY_SIZE:
            raise InvalidCredentialError(f"bad key ELIDED, length not {KEY_SIZE}")

    def __repr__(self) -> str:
        return "Key(key=ELIDED)"

    __str__ = __repr__


class KeyChain:
    """Immutable mapping of key names to Keys.

    Names must look like identifiers (a letter followed by letters or
    digits). Insertion order is preserved; the first name is what the
    enigma tool treats as the default encryption key.
    """

    def __init__(self, keys: Mapping[str, Key]):
        if not isinstance(keys, Mapping):
            raise InvalidCredentialError(f"bogus keys {type(keys).__name__}")
        checked = {}
        for name, key in keys.items():
            if type(name) is not str:
                raise InvalidCredentialError(f"bogus key name {name!r}")
            if not _KEY_NAME_RE.fullmatch(name):
                raise InvalidCredentialError(f"bad key name {name!r}")
            if not isinstance(key, Key):
                raise InvalidCredentialError(f"bogus value at {name!r}: not a Key")
            checked[name] = key
        self._keys = MappingProxyType(checked)

    @property
    def keys(self) -> Mapping[str, Key]:
        return self._keys

    def names(self) -> List[str]:
        return list(self._keys)

    def get(self, name: str) -> Optional[Key]:
        return self._keys.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"KeyChain(names={list(self._keys)!r})"
