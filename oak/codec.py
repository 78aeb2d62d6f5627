from __future__ import annotations

import bz2
import lzma
import zlib
from typing import Tuple

import lz4.block

from .constants import BZIP2_LEVEL, COMPRESSION_2_CODE, LZMA_MEMLIMIT, ZLIB_LEVEL
from .errors import InvalidOptionError, MalformedStringError


# An LZ4 block cannot expand by more than this factor on decompression
_LZ4_MAX_RATIO = 255


def _varint_encode(n: int) -> bytes:
    if n < 0:
        raise ValueError("varint: negative not supported")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out)


def _varint_decode(data: bytes, pos: int) -> Tuple[int, int]:
    shift = 0
    result = 0
    while True:
        if pos >= len(data):
            raise ValueError("varint: truncated")
        b = data[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if not (b & 0x80):
            return result, pos
        shift += 7
        if shift > 63:
            raise ValueError("varint: too large")


def _lz4_compress(data: bytes) -> bytes:
    # varint uncompressed size, then a raw LZ4 block
    return _varint_encode(len(data)) + lz4.block.compress(data, store_size=False)


def _lz4_decompress(data: bytes) -> bytes:
    try:
        size, pos = _varint_decode(data, 0)
    except ValueError as exc:
        raise MalformedStringError(f"lz4: {exc}") from exc
    block = data[pos:]
    if size == 0:
        if block not in (b"", b"\x00"):
            raise MalformedStringError("lz4: trailing data after empty block")
        return b""
    if size > _LZ4_MAX_RATIO * len(block) + 16:
        raise MalformedStringError(f"lz4: implausible size {size} for {len(block)} byte block")
    try:
        out = lz4.block.decompress(block, uncompressed_size=size)
    except lz4.block.LZ4BlockError as exc:
        raise MalformedStringError(f"lz4: {exc}") from exc
    if len(out) != size:
        raise MalformedStringError(f"lz4: size {len(out)} vs {size}")
    return out


class Codec:
    """Compression by algorithm name.

    The names are those of COMPRESSION_2_CODE. Every failure to
    decompress is reported as MalformedStringError since the input came
    off the wire.
    """

    def __init__(self, name: str):
        if name not in COMPRESSION_2_CODE:
            raise InvalidOptionError(f"unknown compression {name!r}")
        self.name = name

    def compress(self, data: bytes) -> bytes:
        if self.name == "none":
            return data
        if self.name == "lz4":
            return _lz4_compress(data)
        if self.name == "zlib":
            return zlib.compress(data, ZLIB_LEVEL)
        if self.name == "bzip2":
            return bz2.compress(data, BZIP2_LEVEL)
        if self.name == "lzma":
            return lzma.compress(data, format=lzma.FORMAT_ALONE)
        raise InvalidOptionError(f"unsupported compression: {self.name}")

    def decompress(self, data: bytes) -> bytes:
        if self.name == "none":
            return data
        if self.name == "lz4":
            return _lz4_decompress(data)
        if self.name == "zlib":
            try:
                return zlib.decompress(data)
            except zlib.error as exc:
                raise MalformedStringError(f"zlib: {exc}") from exc
        if self.name == "bzip2":
            try:
                return bz2.decompress(data)
            except (OSError, ValueError, EOFError) as exc:
                raise MalformedStringError(f"bzip2: {exc}") from exc
        if self.name == "lzma":
            try:
                return lzma.decompress(data, format=lzma.FORMAT_ALONE, memlimit=LZMA_MEMLIMIT)
            except (lzma.LZMAError, EOFError, ValueError) as exc:
                raise MalformedStringError(f"lzma: {exc}") from exc
        raise InvalidOptionError(f"unsupported compression: {self.name}")


def compress(name: str, data: bytes, *, force: bool = False) -> Tuple[bytes, str]:
    """Compress data, returning (payload, name of the algorithm actually used).

    Unless force is set, output that is not strictly smaller than the
    input is discarded and the data is stored as-is under ``none``.
    """
    compressed = Codec(name).compress(data)
    if not force and len(compressed) >= len(data):
        return data, "none"
    return compressed, name


def decompress(name: str, data: bytes) -> bytes:
    return Codec(name).decompress(data)
