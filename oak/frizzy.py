from __future__ import annotations

"""FRIZZY: the flat, cycle-safe text form of a value graph.

Layout::

    F <count> <node> <node> ...

Nodes appear in the walker's pre-order, so node 0 is the root. Containers
refer to their children by node index, which lets a container point at
itself or at nodes that come later. Strings and symbols whose bytes were
already written are emitted as a back-reference into the string table
(lowercase type code plus table index) instead of repeating the bytes.
"""

import math
import re
from typing import Any, Dict, List, Tuple

from .constants import (
    ENC_ASCII,
    ENC_UTF8,
    FRIZZY_HEADER,
    TYPE_FALSE,
    TYPE_FLOAT,
    TYPE_INTEGER,
    TYPE_MAPPING,
    TYPE_NULL,
    TYPE_SEQUENCE,
    TYPE_STRING,
    TYPE_STRING_REF,
    TYPE_SYMBOL,
    TYPE_SYMBOL_REF,
    TYPE_TRUE,
)
from .errors import MalformedStringError, UnsupportedValueError
from .scanner import Scanner
from .symbol import Symbol
from .walker import walk


SUPPORTED_TYPES = (type(None), bool, int, float, str, bytes, Symbol, list, dict)

_HEADER_RE = re.compile(re.escape(FRIZZY_HEADER))
_COUNT_RE = re.compile(rb"[0-9]+")
_CODE_RE = re.compile(rb"[a-zA-Z]")
_ENC_RE = re.compile(rb"[AU]")
_SEP_RE = re.compile(rb"_")
_INT_RE = re.compile(rb"-?[0-9]+")
# Partial exponents ("e", "e+", "e-") are accepted and ignored
_FLOAT_RE = re.compile(
    rb"(?P<sign>-?)(?:(?P<special>Infinity|NaN)"
    rb"|(?P<int>[0-9]+)(?P<frac>\.[0-9]*)?(?:e(?P<exp>[+-][0-9]*)?)?)"
)


def _check_supported(node: Any) -> None:
    if type(node) not in SUPPORTED_TYPES:
        raise UnsupportedValueError(f"{type(node).__name__} not supported")


def _int_text(value: int) -> str:
    try:
        return str(value)
    except ValueError as exc:
        raise UnsupportedValueError(f"integer too large to encode: {exc}") from exc


def float_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        if "." not in mantissa:
            mantissa += ".0"
        text = f"{mantissa}e{exponent}"
    return text


def _string_parts(node: Any) -> Tuple[str, str, bytes]:
    """(type code, encoding tag, raw bytes) for a str, bytes or Symbol."""
    t = type(node)
    try:
        if t is bytes:
            return TYPE_STRING, ENC_ASCII, node
        if t is str:
            return TYPE_STRING, ENC_UTF8, node.encode("utf-8", "surrogateescape")
        name = node.name
        enc = ENC_ASCII if name.isascii() else ENC_UTF8
        return TYPE_SYMBOL, enc, name.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError as exc:
        raise UnsupportedValueError(f"string is not encodable as UTF-8: {exc}") from exc


def serialize(obj: Any) -> bytes:
    """Flatten a value graph into FRIZZY bytes.

    Raises UnsupportedValueError if any reachable node is not None, a
    bool, int, float, str, bytes, Symbol, list or dict (exact types).
    """
    w = walk(obj, _check_supported)
    out = bytearray(FRIZZY_HEADER)
    out += str(len(w.seen)).encode("ascii")
    strings: Dict[bytes, int] = {}
    for node in w.seen:
        t = type(node)
        if node is None:
            out += TYPE_NULL.encode("ascii")
        elif t is bool:
            out += (TYPE_TRUE if node else TYPE_FALSE).encode("ascii")
        elif t is int:
            out += (TYPE_INTEGER + _int_text(node)).encode("ascii")
        elif t is float:
            out += (TYPE_FLOAT + float_text(node)).encode("ascii")
        elif t is str or t is bytes or t is Symbol:
            code, enc, raw = _string_parts(node)
            if raw in strings:
                out += f"{code.lower()}{enc}{strings[raw]}".encode("ascii")
            else:
                out += f"{code}{enc}{len(raw)}".encode("ascii")
                if raw:
                    out += b"_"
                    out += raw
                strings[raw] = len(strings)
        elif t is list:
            out += f"{TYPE_SEQUENCE}{len(node)}".encode("ascii")
            for item in node:
                out += b"_%d" % w.index_of(item)
        elif t is dict:
            out += f"{TYPE_MAPPING}{len(node)}".encode("ascii")
            for k, v in node.items():
                out += b"_%d_%d" % (w.index_of(k), w.index_of(v))
        else:
            raise UnsupportedValueError(f"not handled: {t.__name__}")
    return bytes(out)


def _materialize(code: str, enc: str, raw: bytes) -> Any:
    if code == TYPE_STRING:
        if enc == ENC_ASCII:
            return raw
        return raw.decode("utf-8", "surrogateescape")
    # high bytes in an ASCII symbol survive as surrogates and re-encode as U
    codec = "ascii" if enc == ENC_ASCII else "utf-8"
    return Symbol(raw.decode(codec, "surrogateescape"))


def _parse_float(sc: Scanner) -> float:
    m = sc.match(_FLOAT_RE)
    if m is None:
        raise MalformedStringError(f"bad float at offset {sc.pos}")
    sign = m.group("sign").decode("ascii")
    special = m.group("special")
    if special == b"NaN":
        # sign dropped: -NaN reads as NaN, not as the -0.0 older decoders gave
        return math.nan
    if special == b"Infinity":
        return -math.inf if sign else math.inf
    text = sign + m.group("int").decode("ascii")
    if m.group("frac"):
        text += m.group("frac").decode("ascii")
    exponent = m.group("exp")
    if exponent and len(exponent) > 1:
        text += "e" + exponent.decode("ascii")
    # float() saturates to +-inf and to signed zero at the extremes
    return float(text)


def _parse_index(sc: Scanner, count: int) -> int:
    sc.expect(_SEP_RE, "separator")
    idx = sc.expect_int(_COUNT_RE, "node index")
    if idx >= count:
        raise MalformedStringError(f"node index {idx} out of range for {count} nodes")
    return idx


def deserialize(data: bytes) -> Any:
    """Rebuild the value graph from FRIZZY bytes.

    Containers are allocated empty while parsing and linked up afterwards,
    so forward references, shared nodes and cycles all resolve to the
    right objects.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"deserialize expects bytes, got {type(data).__name__}")
    sc = Scanner(bytes(data))
    sc.expect(_HEADER_RE, "serial code")
    count = sc.expect_int(_COUNT_RE, "object list size")
    if count == 0:
        raise MalformedStringError("empty object list")
    if count > len(sc.data):
        raise MalformedStringError(f"object list size {count} exceeds input length")

    slots: List[Any] = []
    links: List[Tuple[int, List[int]]] = []
    table: List[bytes] = []
    for slot in range(count):
        code = sc.expect(_CODE_RE, "type code").decode("ascii")
        if code == TYPE_NULL:
            slots.append(None)
        elif code == TYPE_TRUE:
            slots.append(True)
        elif code == TYPE_FALSE:
            slots.append(False)
        elif code in (TYPE_STRING, TYPE_SYMBOL, TYPE_STRING_REF, TYPE_SYMBOL_REF):
            enc = sc.expect(_ENC_RE, "string encoding").decode("ascii")
            num = sc.expect_int(_COUNT_RE, "string size")
            if code in (TYPE_STRING, TYPE_SYMBOL):
                raw = b""
                if num > 0:
                    sc.expect(_SEP_RE, "separator")
                    raw = sc.take(num, "string body")
                table.append(raw)
            else:
                if num >= len(table):
                    raise MalformedStringError(f"string table reference {num} out of range")
                raw = table[num]
            slots.append(_materialize(code.upper(), enc, raw))
        elif code == TYPE_INTEGER:
            slots.append(sc.expect_int(_INT_RE, "integer"))
        elif code == TYPE_FLOAT:
            slots.append(_parse_float(sc))
        elif code == TYPE_SEQUENCE:
            num = sc.expect_int(_COUNT_RE, "sequence size")
            links.append((slot, [_parse_index(sc, count) for _ in range(num)]))
            slots.append([])
        elif code == TYPE_MAPPING:
            num = sc.expect_int(_COUNT_RE, "mapping size")
            refs: List[int] = []
            for _ in range(num):
                refs.append(_parse_index(sc, count))
                refs.append(_parse_index(sc, count))
            links.append((slot, refs))
            slots.append({})
        else:
            raise MalformedStringError(f"not handled: {code!r} at offset {sc.pos - 1}")
    if not sc.eos():
        raise MalformedStringError(f"not at end of string: offset {sc.pos} of {len(sc.data)}")

    for slot, refs in links:
        node = slots[slot]
        if type(node) is list:
            node.extend(slots[i] for i in refs)
            continue
        for i in range(0, len(refs), 2):
            key = slots[refs[i]]
            try:
                node[key] = slots[refs[i + 1]]
            except TypeError as exc:
                raise MalformedStringError(f"unhashable mapping key: {exc}") from exc
        if len(node) != len(refs) // 2:
            raise MalformedStringError("duplicate mapping key")
    return slots[0]
