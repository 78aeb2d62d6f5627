from __future__ import annotations

import os
import sys
import argparse
from typing import Any, Dict, List, Optional

from oak.api import decode, encode
from oak.constants import (
    COMPRESSION_2_CODE,
    DEFAULT_COMPRESSION,
    DEFAULT_FORMAT,
    DEFAULT_REDUNDANCY,
    FORMAT_2_CODE,
    REDUNDANCY_2_CODE,
)
from oak.envchain import parse_env_chain
from oak.envelope import WrapOptions
from oak.errors import OakError
from oak.keys import KeyChain, random_key


def _read_stdin_text() -> str:
    # surrogateescape keeps arbitrary input bytes intact through str
    return sys.stdin.buffer.read().decode("utf-8", "surrogateescape")


def _stdin_lines() -> List[str]:
    return [line.strip() for line in _read_stdin_text().splitlines()]


def _show(value: Any) -> str:
    if type(value) is str:
        return value
    return repr(value)


def _write_value(value: Any) -> None:
    if type(value) is not bytes:
        value = _show(value).encode("utf-8", "surrogateescape")
    sys.stdout.flush()
    sys.stdout.buffer.write(value)
    sys.stdout.buffer.flush()


def cmd_cat() -> bool:
    for line in _stdin_lines():
        print(line)
    return True


def cmd_encode_lines(*, options: Dict[str, Any]) -> bool:
    """Encode each stripped stdin line as its own OAK string."""
    for line in _stdin_lines():
        print(encode(line, **options))
    return True


def cmd_decode_lines(*, key_chain: Optional[KeyChain] = None) -> bool:
    for line in _stdin_lines():
        if not line:
            continue
        print(_show(decode(line, key_chain=key_chain)))
    return True


def cmd_encode_file(*, options: Dict[str, Any]) -> bool:
    print(encode(_read_stdin_text(), **options))
    return True


def cmd_decode_file(*, key_chain: Optional[KeyChain] = None) -> bool:
    _write_value(decode(_read_stdin_text().strip(), key_chain=key_chain))
    return True


def cmd_recode_file(*, options: Dict[str, Any]) -> bool:
    """Decode stdin with the chain in options, then encode it again with options."""
    value = decode(_read_stdin_text().strip(), key_chain=options.get("key_chain"))
    print(encode(value, **options))
    return True


def cmd_eigen(iterations: int, *, options: Dict[str, Any]) -> bool:
    """Repeatedly encode stdin, showing how size grows with each layer of OAK."""
    prev = _read_stdin_text()
    print("input: %d" % len(prev))
    for i in range(iterations):
        wrapped = encode(prev, **options)
        psize = len(prev)
        wsize = len(wrapped)
        ratio = (1.0 * wsize / psize) if psize else float("inf")
        print("  iter %3d: %4d => %4d ratio %.2f" % (i, psize, wsize, ratio))
        prev = wrapped
    return True


def cmd_key_check(chain_name: Optional[str], *, key_chain: Optional[KeyChain] = None) -> bool:
    if not chain_name or key_chain is None:
        print("no --key-chain specified")
        return False
    names = key_chain.names()
    if not names:
        print(f"{chain_name}: no keys found")
    else:
        print(f"{chain_name}: found keys: {' '.join(names)}")
    return True


def cmd_key_generate() -> bool:
    """Print a fresh key as an unencrypted OAK string, ready for a <NAME>_KEY_<k> variable."""
    print(encode(random_key()))
    return True


def _add_codec_options(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--redundancy", choices=list(REDUNDANCY_2_CODE), default=DEFAULT_REDUNDANCY, help="Redundancy check (default crc32)")
    ap.add_argument("--compression", choices=list(COMPRESSION_2_CODE), default=DEFAULT_COMPRESSION, help="Compression (default none)")
    ap.add_argument("--force", action="store_true", help="Keep compressed form even if it is bigger")
    ap.add_argument("--format", choices=list(FORMAT_2_CODE), default=DEFAULT_FORMAT, help="Output format (default base64)")
    ap.add_argument("--key", help="Name of the key in --key-chain to encrypt with")
    ap.add_argument("--force-oak-4", dest="force_oak_4", action="store_true", help="Emit oak_4 even when not encrypting")


def _add_key_chain_option(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--key-chain", dest="key_chain", help="Environment root NAME; keys come from NAME_KEYS and NAME_KEY_<k>")


def _encode_options(args: argparse.Namespace, key_chain: Optional[KeyChain]) -> Dict[str, Any]:
    options = dict(
        redundancy=args.redundancy,
        compression=args.compression,
        force=args.force,
        format=args.format,
        key_chain=key_chain,
        key=args.key,
        force_oak_4=args.force_oak_4,
    )
    # fail on bad options before consuming stdin
    WrapOptions(**options)
    return options


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="oak",
        description="OAK string encoder/decoder",
        epilog=(
            "Example: (echo hello; echo world) | oak encode-lines | oak decode-lines"
        ),
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_enc = sub.add_parser("encode-lines", help="Encode each stdin line")
    _add_codec_options(ap_enc)
    _add_key_chain_option(ap_enc)

    ap_dec = sub.add_parser("decode-lines", help="Decode each stdin line")
    _add_key_chain_option(ap_dec)

    ap_encf = sub.add_parser("encode-file", help="Encode all of stdin as one string")
    _add_codec_options(ap_encf)
    _add_key_chain_option(ap_encf)

    ap_decf = sub.add_parser("decode-file", help="Decode one OAK string from stdin")
    _add_key_chain_option(ap_decf)

    ap_recf = sub.add_parser("recode-file", help="Decode stdin and encode it again with new options")
    _add_codec_options(ap_recf)
    _add_key_chain_option(ap_recf)

    sub.add_parser("cat", help="Echo stripped stdin lines")

    ap_eigen = sub.add_parser("eigen", help="Encode stdin N times over, reporting size ratios")
    ap_eigen.add_argument("iterations", type=int, help="Number of iterations")
    _add_codec_options(ap_eigen)
    _add_key_chain_option(ap_eigen)

    ap_check = sub.add_parser("key-check", help="List the keys found in --key-chain")
    _add_key_chain_option(ap_check)

    sub.add_parser("key-generate", help="Print a new random key as an unencrypted OAK string")

    args = ap.parse_args(argv)
    if args.cmd == "eigen" and args.iterations < 0:
        ap.error("eigen: iterations must be non-negative")
    try:
        key_chain = None
        if getattr(args, "key_chain", None):
            key_chain = parse_env_chain(os.environ, args.key_chain)
        if args.cmd == "encode-lines":
            ok = cmd_encode_lines(options=_encode_options(args, key_chain))
        elif args.cmd == "decode-lines":
            ok = cmd_decode_lines(key_chain=key_chain)
        elif args.cmd == "encode-file":
            ok = cmd_encode_file(options=_encode_options(args, key_chain))
        elif args.cmd == "decode-file":
            ok = cmd_decode_file(key_chain=key_chain)
        elif args.cmd == "recode-file":
            ok = cmd_recode_file(options=_encode_options(args, key_chain))
        elif args.cmd == "cat":
            ok = cmd_cat()
        elif args.cmd == "eigen":
            ok = cmd_eigen(args.iterations, options=_encode_options(args, key_chain))
        elif args.cmd == "key-check":
            ok = cmd_key_check(args.key_chain, key_chain=key_chain)
        elif args.cmd == "key-generate":
            ok = cmd_key_generate()
        else:
            raise RuntimeError("Unknown command")
        sys.exit(0 if ok else 1)
    except OakError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
