from __future__ import annotations

"""enigma: a deliberately narrow tool for wrapping secrets with OAK.

The key chain is always read from ENIGMA_KEYS / ENIGMA_KEY_<name>. The first
listed key encrypts; any listed key may decrypt, which is how keys are
rotated (list the new key first, recrypt, then drop the old one).

    $ export ENIGMA_KEYS=foo ENIGMA_KEY_foo=$(enigma keygen)
    $ echo Hello | enigma encrypt | enigma decrypt
    Hello
"""

import os
import sys
import argparse
from typing import List, Mapping, Optional

from oak.api import decode, encode
from oak.envchain import parse_env_chain
from oak.errors import OakError
from oak.keys import KeyChain, random_key


CHAIN_NAME = "ENIGMA"


def _read_stdin_text() -> str:
    return sys.stdin.buffer.read().decode("utf-8", "surrogateescape")


def _load_chain(env: Mapping[str, str]) -> KeyChain:
    try:
        return parse_env_chain(env, CHAIN_NAME)
    except OakError as exc:
        raise OakError(f"failed to parse {CHAIN_NAME} keychain: {type(exc).__name__} {exc}") from exc


def _default_key(key_chain: KeyChain, env: Mapping[str, str]) -> str:
    names = key_chain.names()
    if not names:
        raise OakError(f"no default key found in {CHAIN_NAME}_KEYS: {env.get(CHAIN_NAME + '_KEYS', '')!r}")
    return names[0]


def seal(raw, key_chain: KeyChain, key: str) -> str:
    """Encrypt raw under key. The result is always an encrypted oak_4 string."""
    wrapped = encode(
        raw,
        key_chain=key_chain,
        key=key,
        redundancy="none",  # GCM authentication already covers integrity
        compression="bzip2",
    )
    if not wrapped.startswith("oak_4"):
        raise RuntimeError("oak not oak_4")
    if wrapped.startswith("oak_4_"):
        raise RuntimeError("oak not encrypted")
    return wrapped


def cmd_keygen() -> bool:
    # not encrypted: this is what goes into the key chain
    print(encode(random_key()))
    return True


def cmd_keyshow(*, env: Mapping[str, str]) -> bool:
    print(" ".join(_load_chain(env).names()))
    return True


def cmd_decrypt(*, env: Mapping[str, str]) -> bool:
    raw = decode(_read_stdin_text().strip(), key_chain=_load_chain(env))
    if type(raw) is bytes:
        sys.stdout.flush()
        sys.stdout.buffer.write(raw)
        sys.stdout.buffer.flush()
        return True
    text = raw if type(raw) is str else repr(raw)
    sys.stdout.write(text if text.endswith("\n") else text + "\n")
    return True


def cmd_encrypt(*, env: Mapping[str, str], recrypt: bool = False) -> bool:
    key_chain = _load_chain(env)
    key = _default_key(key_chain, env)
    raw = _read_stdin_text()
    if recrypt:
        raw = decode(raw.strip(), key_chain=key_chain)
    print(seal(raw, key_chain, key))
    return True


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(
        prog="enigma",
        description="Wrap secrets with OAK encryption using the ENIGMA key chain",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)
    sub.add_parser("keygen", help="Generate a random key, emitted as *un*encrypted OAK")
    sub.add_parser("keyshow", help="Show the available keys in the ENIGMA key chain")
    sub.add_parser("encrypt", help="Encrypt stdin with the first key in ENIGMA_KEYS")
    sub.add_parser("decrypt", help="Decrypt stdin using ENIGMA_KEYS")
    sub.add_parser("recrypt", help="Decrypt stdin, then encrypt with the first key in ENIGMA_KEYS")

    args = ap.parse_args(argv)
    env = os.environ
    try:
        if args.cmd == "keygen":
            ok = cmd_keygen()
        elif args.cmd == "keyshow":
            ok = cmd_keyshow(env=env)
        elif args.cmd == "encrypt":
            ok = cmd_encrypt(env=env)
        elif args.cmd == "decrypt":
            ok = cmd_decrypt(env=env)
        elif args.cmd == "recrypt":
            ok = cmd_encrypt(env=env, recrypt=True)
        else:
            raise RuntimeError("Unknown command")
        sys.exit(0 if ok else 1)
    except (OakError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
