from __future__ import annotations

"""Byte layer: framing of arbitrary bytes as oak_3 / oak_4 strings.

oak_3 carries every code in cleartext::

    oak_3 R C F _ check _ size _ payload _ok

oak_4 exposes only what is needed to find and open the payload. The
redundancy and compression codes and the source check travel inside it,
encrypted when a key is named::

    oak_4 [keyname] _ F size _ payload _ok
    payload (before formatting) := [iv tag] encrypt(R C check _ compressed)

The oak_4 header, up to and including F, is authenticated as associated
data.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional, Union

from .codec import compress, decompress
from .constants import (
    CODE_2_COMPRESSION,
    CODE_2_FORMAT,
    CODE_2_REDUNDANCY,
    COMPRESSION_2_CODE,
    DEFAULT_COMPRESSION,
    DEFAULT_FORMAT,
    DEFAULT_REDUNDANCY,
    FORMAT_2_CODE,
    IV_SIZE,
    OAK_3,
    OAK_4,
    REDUNDANCY_2_CODE,
    SEPARATOR,
    TERMINATOR,
)
from .encryption import EncryptionContext
from .errors import InvalidCredentialError, InvalidOptionError, MalformedStringError, MissingKeyError
from .hashutil import check
from .keys import Key, KeyChain
from .scanner import Scanner


_VERSION_RE = re.compile(rb"oak_[34]")
_REDUNDANCY_RE = re.compile(rb"[NCS]")
_COMPRESSION_RE = re.compile(rb"[N4ZBM]")
_FORMAT_RE = re.compile(rb"[NB]")
_SEP_RE = re.compile(re.escape(SEPARATOR))
_CHECK_RE = re.compile(rb"[a-f0-9]+")
_SIZE_RE = re.compile(rb"[0-9]+")
_KEY_NAME_RE = re.compile(rb"[^_]*")
_BASE64URL_RE = re.compile(rb"[A-Za-z0-9_-]*")


@dataclass(frozen=True)
class WrapOptions:
    """Validated options for wrap() and encode().

    A key names an entry in key_chain and switches on oak_4 encryption.
    debug_iv fixes the GCM nonce and is for test vectors only: reusing a
    nonce under one key voids every guarantee the cipher makes.
    """

    redundancy: str = DEFAULT_REDUNDANCY
    compression: str = DEFAULT_COMPRESSION
    force: bool = False
    format: str = DEFAULT_FORMAT
    key_chain: Optional[KeyChain] = None
    key: Optional[str] = None
    debug_iv: Optional[bytes] = None
    force_oak_4: bool = False

    def __post_init__(self) -> None:
        if self.redundancy not in REDUNDANCY_2_CODE:
            raise InvalidOptionError(f"unknown redundancy {self.redundancy!r}")
        if self.compression not in COMPRESSION_2_CODE:
            raise InvalidOptionError(f"unknown compression {self.compression!r}")
        if self.format not in FORMAT_2_CODE:
            raise InvalidOptionError(f"unknown format {self.format!r}")
        if type(self.force) is not bool:
            raise InvalidOptionError(f"bad force {self.force!r}")
        if type(self.force_oak_4) is not bool:
            raise InvalidOptionError(f"bad force_oak_4 {self.force_oak_4!r}")
        if self.key_chain is not None and not isinstance(self.key_chain, KeyChain):
            raise InvalidOptionError(f"bad key_chain {type(self.key_chain).__name__}")
        if self.debug_iv is not None:
            if type(self.debug_iv) is not bytes or len(self.debug_iv) != IV_SIZE:
                raise InvalidOptionError(f"debug_iv must be {IV_SIZE} bytes")
        if self.key is not None:
            if type(self.key) is not str:
                raise InvalidOptionError(f"bad key name {self.key!r}")
            if self.key_chain is None:
                raise InvalidOptionError(f"key {self.key} without key_chain")
            if self.key not in self.key_chain:
                raise InvalidCredentialError(f"key not found in {self.key_chain.names()}: {self.key}")

    @property
    def encryption_key(self) -> Optional[Key]:
        if self.key is None:
            return None
        return self.key_chain.get(self.key)

    @property
    def uses_oak_4(self) -> bool:
        return self.key is not None or self.force_oak_4


def _format(fmt: str, data: bytes) -> bytes:
    if fmt == "none":
        return data
    if fmt == "base64":
        return base64.urlsafe_b64encode(data).rstrip(b"=")
    raise InvalidOptionError(f"unknown format {fmt!r}")


def _deformat(fmt: str, data: bytes) -> bytes:
    if fmt == "none":
        return data
    if not _BASE64URL_RE.fullmatch(data):
        raise MalformedStringError("payload is not unpadded base64url")
    try:
        out = base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
    except binascii.Error as exc:
        raise MalformedStringError(f"base64: {exc}") from exc
    # unused low bits of the last character must be zero
    if _format("base64", out) != data:
        raise MalformedStringError("payload is not canonical base64url")
    return out


def _code(table, name: str) -> bytes:
    return table[name].encode("ascii")


def _frame(header: bytes, formatted: bytes) -> str:
    out = header + str(len(formatted)).encode("ascii") + SEPARATOR + formatted + TERMINATOR
    # latin-1 maps each wire byte to exactly one character
    return out.decode("latin-1")


def wrap_with(data: bytes, options: WrapOptions) -> str:
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"wrap expects bytes, got {type(data).__name__}")
    data = bytes(data)
    source_check = check(options.redundancy, data).encode("ascii")
    compressed, used = compress(options.compression, data, force=options.force)
    if options.uses_oak_4:
        return _wrap_oak_4(data, options, source_check, compressed, used)
    header = (
        OAK_3
        + _code(REDUNDANCY_2_CODE, options.redundancy)
        + _code(COMPRESSION_2_CODE, used)
        + _code(FORMAT_2_CODE, options.format)
        + SEPARATOR
        + source_check
        + SEPARATOR
    )
    return _frame(header, _format(options.format, compressed))


def _wrap_oak_4(data: bytes, options: WrapOptions, source_check: bytes, compressed: bytes, used: str) -> str:
    header = OAK_4
    if options.key is not None:
        header += options.key.encode("ascii")
    header += SEPARATOR + _code(FORMAT_2_CODE, options.format)
    plaintext = (
        _code(REDUNDANCY_2_CODE, options.redundancy)
        + _code(COMPRESSION_2_CODE, used)
        + source_check
        + SEPARATOR
        + compressed
    )
    key = options.encryption_key
    if key is not None:
        sealed = EncryptionContext(key).encrypt(header, plaintext, debug_iv=options.debug_iv)
    else:
        sealed = plaintext
    return _frame(header, _format(options.format, sealed))


def wrap(
    data: bytes,
    *,
    redundancy: str = DEFAULT_REDUNDANCY,
    compression: str = DEFAULT_COMPRESSION,
    force: bool = False,
    format: str = DEFAULT_FORMAT,
    key_chain: Optional[KeyChain] = None,
    key: Optional[str] = None,
    debug_iv: Optional[bytes] = None,
    force_oak_4: bool = False,
) -> str:
    """Frame data as an OAK string. Inverted by unwrap()."""
    options = WrapOptions(
        redundancy=redundancy,
        compression=compression,
        force=force,
        format=format,
        key_chain=key_chain,
        key=key,
        debug_iv=debug_iv,
        force_oak_4=force_oak_4,
    )
    return wrap_with(data, options)


def _as_wire_bytes(text: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(text, str):
        try:
            return text.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise MalformedStringError(f"character outside the OAK alphabet: {exc}") from exc
    if isinstance(text, (bytes, bytearray)):
        return bytes(text)
    raise TypeError(f"unwrap expects str or bytes, got {type(text).__name__}")


def _payload(sc: Scanner) -> bytes:
    size = sc.expect_int(_SIZE_RE, "fsize")
    sc.expect(_SEP_RE, "separator")
    formatted = sc.take(size, "payload")
    if sc.rest() != TERMINATOR:
        raise MalformedStringError("bad ok")
    return formatted


def _verify(redundancy: str, original: bytes, scheck: bytes) -> bytes:
    scheck_re = check(redundancy, original).encode("ascii")
    if scheck != scheck_re:
        raise MalformedStringError(f"scheck {scheck!r} vs {scheck_re!r}")
    return original


def unwrap(text: Union[str, bytes], *, key_chain: Optional[KeyChain] = None) -> bytes:
    """Recover the bytes framed by wrap().

    Any defect in the string raises MalformedStringError, including a
    failed redundancy check and a failed authentication. An oak_4 string
    naming a key that key_chain does not hold raises MissingKeyError.
    """
    if key_chain is not None and not isinstance(key_chain, KeyChain):
        raise InvalidOptionError(f"bad key_chain {type(key_chain).__name__}")
    sc = Scanner(_as_wire_bytes(text))
    version = sc.expect(_VERSION_RE, "oak+ver")
    if version == OAK_4:
        return _unwrap_oak_4(sc, key_chain)
    return _unwrap_oak_3(sc)


def _unwrap_oak_3(sc: Scanner) -> bytes:
    r = sc.expect(_REDUNDANCY_RE, "redundancy").decode("ascii")
    c = sc.expect(_COMPRESSION_RE, "compression").decode("ascii")
    f = sc.expect(_FORMAT_RE, "format").decode("ascii")
    sc.expect(_SEP_RE, "separator")
    scheck = sc.expect(_CHECK_RE, "scheck")
    sc.expect(_SEP_RE, "separator")
    formatted = _payload(sc)
    compressed = _deformat(CODE_2_FORMAT[f], formatted)
    original = decompress(CODE_2_COMPRESSION[c], compressed)
    return _verify(CODE_2_REDUNDANCY[r], original, scheck)


def _unwrap_oak_4(sc: Scanner, key_chain: Optional[KeyChain]) -> bytes:
    name = sc.scan(_KEY_NAME_RE)
    key = None
    if name:
        key_name = name.decode("latin-1")
        if key_chain is None:
            raise MissingKeyError(f"key {key_name} but no key_chain")
        key = key_chain.get(key_name)
        if key is None:
            raise MissingKeyError(f"key not found in {key_chain.names()}: {key_name}")
    sc.expect(_SEP_RE, "separator")
    f = sc.expect(_FORMAT_RE, "format").decode("ascii")
    header = sc.data[:sc.pos]
    formatted = _payload(sc)
    sealed = _deformat(CODE_2_FORMAT[f], formatted)
    plaintext = EncryptionContext(key).decrypt(header, sealed) if key is not None else sealed
    inner = Scanner(plaintext)
    r = inner.expect(_REDUNDANCY_RE, "redundancy").decode("ascii")
    c = inner.expect(_COMPRESSION_RE, "compression").decode("ascii")
    scheck = inner.expect(_CHECK_RE, "scheck")
    inner.expect(_SEP_RE, "separator")
    original = decompress(CODE_2_COMPRESSION[c], inner.rest())
    return _verify(CODE_2_REDUNDANCY[r], original, scheck)
