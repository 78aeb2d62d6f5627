from __future__ import annotations

import hashlib
import zlib

from .errors import InvalidOptionError


def crc32_text(data: bytes) -> str:
    return "%d" % zlib.crc32(data)


def sha1_text(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def check(redundancy: str, data: bytes) -> str:
    """Redundancy check over data, as the text that goes on the wire.

    ``none`` is the constant "0" so the check field is never empty.
    """
    if redundancy == "none":
        return "0"
    if redundancy == "crc32":
        return crc32_text(data)
    if redundancy == "sha1":
        return sha1_text(data)
    raise InvalidOptionError(f"unknown redundancy {redundancy!r}")
