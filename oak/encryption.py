from __future__ import annotations

"""AES-256-GCM for oak_4 payloads, backed by PyCryptodomex.

Sealed payloads are laid out as ``iv || tag || ciphertext``. IV and tag
have fixed widths so no length prefix is needed. The oak_4 cleartext
header is bound to the ciphertext as associated data.
"""

import os
from typing import Optional

from Cryptodome.Cipher import AES

from .constants import IV_SIZE, TAG_SIZE
from .errors import InvalidCredentialError, InvalidOptionError, MalformedStringError
from .keys import Key


class EncryptionContext:
    def __init__(self, key: Key):
        if not isinstance(key, Key):
            raise InvalidCredentialError("encryption requires a Key")
        self.key = key

    def _cipher(self, iv: bytes):
        return AES.new(self.key.key, AES.MODE_GCM, nonce=iv, mac_len=TAG_SIZE)

    def encrypt(self, aad: bytes, plaintext: bytes, *, debug_iv: Optional[bytes] = None) -> bytes:
        """Seal plaintext, authenticating aad alongside it.

        debug_iv pins the nonce for reproducible test vectors. Reusing a
        nonce under one key voids every guarantee GCM makes, so it must
        never be supplied outside tests.
        """
        if debug_iv is not None and len(debug_iv) != IV_SIZE:
            raise InvalidOptionError(f"debug_iv must be {IV_SIZE} bytes")
        iv = debug_iv if debug_iv is not None else os.urandom(IV_SIZE)
        cipher = self._cipher(iv)
        cipher.update(aad)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        return iv + tag + ciphertext

    def decrypt(self, aad: bytes, payload: bytes) -> bytes:
        if len(payload) < self.overhead():
            raise MalformedStringError("encrypted payload too short")
        iv = payload[:IV_SIZE]
        tag = payload[IV_SIZE:IV_SIZE + TAG_SIZE]
        ciphertext = payload[IV_SIZE + TAG_SIZE:]
        cipher = self._cipher(iv)
        cipher.update(aad)
        try:
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError as exc:
            raise MalformedStringError(f"authentication failed: {exc}") from exc

    def overhead(self) -> int:
        return IV_SIZE + TAG_SIZE
