from __future__ import annotations

import re
from typing import Mapping

from .api import decode
from .keys import Key, KeyChain


_LEADING_RE = re.compile(r"^[, ]*")
_SPLIT_RE = re.compile(r"[ ,]+")


def parse_env_chain(env: Mapping[str, str], name: str) -> KeyChain:
    """Build a KeyChain from environment-style variables.

    With ``FOO_KEYS=a,b`` the secrets are read from ``FOO_KEY_a`` and
    ``FOO_KEY_b``, each holding an unencrypted OAK encoding of the raw
    32-byte key (as printed by ``oak key-generate``). Names in FOO_KEYS may
    be separated by any run of commas and spaces.

    A listed key whose variable is missing or undecodable raises
    MalformedStringError; a secret of the wrong length raises
    InvalidCredentialError.
    """
    listed = _LEADING_RE.sub("", env.get(f"{name}_KEYS") or "", count=1)
    key_names = [k for k in _SPLIT_RE.split(listed) if k]
    keys = {}
    for key_name in key_names:
        secret = decode(env.get(f"{name}_KEY_{key_name}") or "")
        keys[key_name] = Key(secret)
    return KeyChain(keys)
