"""
OAK: corruption-detecting, optionally encrypted text encoding of value graphs.

Features:

- Structure layer (FRIZZY) that preserves shared references and cycles between
  lists and dicts, with string deduplication through a string table.
- Byte layer with CRC32 or SHA-1 redundancy checks, lz4/zlib/bzip2/lzma
  compression and URL-safe base64 formatting.
- oak_4 strings with AES-256-GCM encryption and named keys drawn from a
  KeyChain, so keys can be rotated without re-encoding old strings.

encode()/decode() are the intended entry points. serialize()/deserialize() and
wrap()/unwrap() expose the two layers separately.
"""

from .api import decode, encode
from .constants import (
    CODE_2_COMPRESSION,
    CODE_2_FORMAT,
    CODE_2_REDUNDANCY,
    COMPRESSION_2_CODE,
    FORMAT_2_CODE,
    REDUNDANCY_2_CODE,
)
from .envchain import parse_env_chain
from .envelope import WrapOptions, unwrap, wrap
from .errors import (
    InvalidCredentialError,
    InvalidOptionError,
    MalformedStringError,
    MissingKeyError,
    OakError,
    UnsupportedValueError,
)
from .frizzy import deserialize, serialize
from .keys import Key, KeyChain, random_iv, random_key
from .symbol import Symbol
from .walker import equivalent, walk

__version__ = "0.1"

__all__ = [
    "encode",
    "decode",
    "serialize",
    "deserialize",
    "wrap",
    "unwrap",
    "WrapOptions",
    "walk",
    "equivalent",
    "Key",
    "KeyChain",
    "random_key",
    "random_iv",
    "parse_env_chain",
    "Symbol",
    "OakError",
    "UnsupportedValueError",
    "MalformedStringError",
    "MissingKeyError",
    "InvalidOptionError",
    "InvalidCredentialError",
    "REDUNDANCY_2_CODE",
    "CODE_2_REDUNDANCY",
    "COMPRESSION_2_CODE",
    "CODE_2_COMPRESSION",
    "FORMAT_2_CODE",
    "CODE_2_FORMAT",
]
