from __future__ import annotations

import re
from typing import Optional, Pattern

from .errors import MalformedStringError


class Scanner:
    """Cursor over a byte string that consumes anchored regex matches.

    Every failure to find what the grammar requires is a
    MalformedStringError carrying the offset where parsing stopped.
    """

    def __init__(self, data: bytes, pos: int = 0):
        self.data = data
        self.pos = pos

    def match(self, pattern: Pattern[bytes]) -> Optional[re.Match]:
        m = pattern.match(self.data, self.pos)
        if m is not None:
            self.pos = m.end()
        return m

    def scan(self, pattern: Pattern[bytes]) -> Optional[bytes]:
        m = self.match(pattern)
        return None if m is None else m.group(0)

    def expect(self, pattern: Pattern[bytes], what: str) -> bytes:
        got = self.scan(pattern)
        if got is None:
            raise MalformedStringError(f"bad {what} at offset {self.pos}")
        return got

    def expect_int(self, pattern: Pattern[bytes], what: str) -> int:
        text = self.expect(pattern, what)
        try:
            return int(text)
        except ValueError as exc:
            # only reachable past the interpreter's int digit limit
            raise MalformedStringError(f"bad {what} at offset {self.pos}: {exc}") from exc

    def take(self, n: int, what: str) -> bytes:
        end = self.pos + n
        if n < 0 or end > len(self.data):
            raise MalformedStringError(f"{what}: wanted {n} bytes at offset {self.pos}, have {len(self.data) - self.pos}")
        out = self.data[self.pos:end]
        self.pos = end
        return out

    def rest(self) -> bytes:
        out = self.data[self.pos:]
        self.pos = len(self.data)
        return out

    def eos(self) -> bool:
        return self.pos >= len(self.data)
