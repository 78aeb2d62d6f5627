from __future__ import annotations

from typing import Any, Optional, Union

from .constants import DEFAULT_COMPRESSION, DEFAULT_FORMAT, DEFAULT_REDUNDANCY
from .envelope import WrapOptions, unwrap, wrap_with
from .frizzy import deserialize, serialize
from .keys import KeyChain


def encode(
    obj: Any,
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
    """Encode a value graph as an OAK string.

    Args:
        obj: None, bool, int, float, str, bytes, Symbol, or lists and dicts
            of those. Shared and cyclic references are preserved.
        redundancy: "none", "crc32" (default) or "sha1".
        compression: "none" (default), "lz4", "zlib", "bzip2" or "lzma".
        force: Keep the compressed form even when it is not smaller.
        format: "none" or "base64" (default, URL-safe and unpadded).
        key_chain: KeyChain holding the encryption key.
        key: Name of the key in key_chain to encrypt with (oak_4).
        debug_iv: Fixed 12-byte nonce. Test vectors only.
        force_oak_4: Emit oak_4 even without encryption.

    Returns:
        The OAK string. Unless format is "none" it is plain ASCII.

    Raises:
        InvalidOptionError: Options are invalid. Checked before any work.
        UnsupportedValueError: obj holds something OAK cannot encode.
    """
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
    return wrap_with(serialize(obj), options)


def decode(text: Union[str, bytes], *, key_chain: Optional[KeyChain] = None) -> Any:
    """Invert encode().

    Raises:
        MalformedStringError: text is not a valid OAK string, was
            corrupted, or cannot be decrypted with key_chain.
    """
    return deserialize(unwrap(text, key_chain=key_chain))
