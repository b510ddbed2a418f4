from __future__ import annotations
import os
from typing import Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import CipherInitError, RandomSourceExhausted

"""AES-256-CBC payload encryption, independent of the key-wrap scheme."""

KEY_SIZE = 32
BLOCK_SIZE = 16  # AES block size in bytes


def _random_bytes(n: int) -> bytes:
    try:
        data = os.urandom(n)
    except (OSError, NotImplementedError) as exc:
        raise RandomSourceExhausted(f"secure random source failed: {exc}") from exc
    if len(data) != n:
        raise RandomSourceExhausted(f"secure random source returned {len(data)} of {n} bytes")
    return data


class SymmetricEncryptor:
    """Encrypt messages with a fresh key per tick.

    PKCS7 pads the plaintext to the AES block size; the IV is drawn from the
    OS CSPRNG for every message.
    """

    key_size = KEY_SIZE
    iv_size = BLOCK_SIZE

    def generate_key(self) -> bytes:
        return _random_bytes(self.key_size)

    def _cipher(self, key: bytes, iv: bytes) -> Cipher:
        if len(key) != self.key_size:
            raise CipherInitError(f"AES-256 needs a {self.key_size}-byte key, got {len(key)}")
        try:
            return Cipher(algorithms.AES(key), modes.CBC(iv))
        except ValueError as exc:
            raise CipherInitError(str(exc)) from exc

    def encrypt(self, message: bytes, key: bytes) -> Tuple[bytes, bytes]:
        """Return ``(ciphertext, iv)``."""
        iv = _random_bytes(self.iv_size)
        encryptor = self._cipher(key, iv).encryptor()
        padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
        padded = padder.update(message) + padder.finalize()
        return encryptor.update(padded) + encryptor.finalize(), iv

    def decrypt(self, ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
        decryptor = self._cipher(key, iv).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
