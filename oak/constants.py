from types import MappingProxyType


# Wire version tags
OAK_3 = b"oak_3"
OAK_4 = b"oak_4"
SEPARATOR = b"_"
TERMINATOR = b"_ok"

# Structure layer header
FRIZZY_HEADER = b"F"

# Structure layer type codes; lowercase string/symbol codes mark a string-table back-reference
TYPE_MAPPING = "H"
TYPE_SEQUENCE = "A"
TYPE_STRING = "S"
TYPE_SYMBOL = "Y"
TYPE_STRING_REF = "s"
TYPE_SYMBOL_REF = "y"
TYPE_INTEGER = "I"
TYPE_FLOAT = "F"
TYPE_NULL = "n"
TYPE_TRUE = "t"
TYPE_FALSE = "f"

# String encoding tags
ENC_ASCII = "A"
ENC_UTF8 = "U"


# Algorithm name <-> single character wire code
REDUNDANCY_2_CODE = MappingProxyType({
    "none": "N",
    "crc32": "C",
    "sha1": "S",
})
CODE_2_REDUNDANCY = MappingProxyType({v: k for k, v in REDUNDANCY_2_CODE.items()})

COMPRESSION_2_CODE = MappingProxyType({
    "none": "N",
    "lz4": "4",
    "zlib": "Z",
    "bzip2": "B",
    "lzma": "M",
})
CODE_2_COMPRESSION = MappingProxyType({v: k for k, v in COMPRESSION_2_CODE.items()})

# base64 is the URL-safe alphabet with padding stripped
FORMAT_2_CODE = MappingProxyType({
    "none": "N",
    "base64": "B",
})
CODE_2_FORMAT = MappingProxyType({v: k for k, v in FORMAT_2_CODE.items()})


# Defaults for wrap()/encode()
DEFAULT_REDUNDANCY = "crc32"
DEFAULT_COMPRESSION = "none"
DEFAULT_FORMAT = "base64"

# AES-256-GCM
KEY_SIZE = 32
IV_SIZE = 12
TAG_SIZE = 16

# Key names look like identifiers so they never collide with the separator
KEY_NAME_PATTERN = r"[A-Za-z][A-Za-z0-9]*"

# Compressor levels matching the historical wire output
ZLIB_LEVEL = 6
BZIP2_LEVEL = 9
# Upper bound on decoder memory for lzma payloads read off the wire
LZMA_MEMLIMIT = 128 * 1024 * 1024
