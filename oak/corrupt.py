from __future__ import annotations

import os
import sys
import argparse
from typing import Iterator, List, Optional, Tuple

from oak.api import decode
from oak.envchain import parse_env_chain
from oak.errors import MalformedStringError, OakError
from oak.keys import KeyChain


BITS = (0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80)

Variant = Tuple[str, str]


def flip(text: str, offset: int, xor_val: int = 0x80) -> str:
    if offset < 0 or offset >= len(text):
        raise ValueError(f"Offset {offset} outside string of length {len(text)}")
    return text[:offset] + chr(ord(text[offset]) ^ (xor_val & 0xFF)) + text[offset + 1:]


def deletions(text: str) -> Iterator[Variant]:
    for i in range(len(text)):
        yield f"delete {i}", text[:i] + text[i + 1:]


def duplications(text: str) -> Iterator[Variant]:
    for i in range(len(text)):
        yield f"duplicate {i}", text[:i + 1] + text[i:]


def bit_flips(text: str) -> Iterator[Variant]:
    for i in range(len(text)):
        for bit in BITS:
            yield f"flip {i} ^0x{bit:02x}", flip(text, i, bit)


def swaps(text: str) -> Iterator[Variant]:
    """Every exchange of two differing characters, adjacent or not."""
    for i in range(len(text)):
        for j in range(i + 1, len(text)):
            if text[i] == text[j]:
                continue
            yield f"swap {i} {j}", text[:i] + text[j] + text[i + 1:j] + text[i] + text[j + 1:]


def variants(text: str) -> Iterator[Variant]:
    yield from deletions(text)
    yield from duplications(text)
    yield from bit_flips(text)
    yield from swaps(text)


def sweep(text: str, *, key_chain: Optional[KeyChain] = None) -> List[Variant]:
    """Decode every single-fault variant of text; return those that did not fail."""
    survivors: List[Variant] = []
    for label, corrupt in variants(text):
        try:
            decode(corrupt, key_chain=key_chain)
        except MalformedStringError:
            continue
        survivors.append((label, corrupt))
    return survivors


def cmd_flip(args: argparse.Namespace) -> None:
    print(flip(args.text, args.offset, xor_val=args.xor))


def cmd_sweep(args: argparse.Namespace) -> None:
    key_chain = parse_env_chain(os.environ, args.key_chain) if args.key_chain else None
    texts = [args.text] if args.text else [line.strip() for line in sys.stdin if line.strip()]
    dirty = 0
    for text in texts:
        decode(text, key_chain=key_chain)
        survivors = sweep(text, key_chain=key_chain)
        for label, corrupt in survivors:
            print(f"SURVIVED {label}: {corrupt}")
        print(f"{'FAIL' if survivors else 'OK'} {text}")
        dirty += len(survivors)
    if dirty:
        sys.exit(1)


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="oak.corrupt", description="Corrupt OAK strings for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_flip = sub.add_parser("flip", help="Toggle bits of one character")
    p_flip.add_argument("text", help="OAK string")
    p_flip.add_argument("--offset", type=int, required=True, help="Character offset")
    p_flip.add_argument("--xor", type=lambda x: int(x, 0), default=0x80, help="XOR mask to apply (default 0x80)")
    p_flip.set_defaults(func=cmd_flip)

    p_sweep = sub.add_parser("sweep", help="Check that every single-fault variant fails to decode")
    p_sweep.add_argument("text", nargs="?", help="OAK string (default: one per stdin line)")
    p_sweep.add_argument("--key-chain", dest="key_chain", help="Environment root NAME for decryption keys")
    p_sweep.set_defaults(func=cmd_sweep)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (OakError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
