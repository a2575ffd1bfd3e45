"""Symmetric encryption of stored key material."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
_VALID_KEY_SIZES = (16, 24, 32)


class EncryptionKeyType(str, Enum):
    """Where the encryption key for stored keys lives."""

    GOOGLE_KMS = "google_kms"
    AWS_KMS = "aws_kms"
    LOCAL = "local"

    def __str__(self) -> str:
        return self.value


class Crypter(Protocol):
    """Encrypts and decrypts byte strings."""

    def encrypt(self, message: bytes) -> bytes:
        """Encrypt a message."""

    def decrypt(self, encrypted: bytes) -> bytes:
        """Decrypt a message."""


class KeySizeError(ValueError):
    """The AES key has an invalid length."""

    def __init__(self, size: int) -> None:
        super().__init__(f"crypto/aes: invalid key size {size}")
        self.size = size

    def __eq__(self, other: object) -> bool:
        return isinstance(other, KeySizeError) and other.size == self.size

    def __hash__(self) -> int:
        return hash(self.size)


class DecryptionError(ValueError):
    """The ciphertext could not be decrypted."""


@dataclass(frozen=True)
class AESCrypter:
    """AES-GCM crypter; the random nonce is prepended to the ciphertext."""

    key: bytes = field(repr=False)

    def _cipher(self) -> AESGCM:
        if len(self.key) not in _VALID_KEY_SIZES:
            raise KeySizeError(len(self.key))
        return AESGCM(bytes(self.key))

    def encrypt(self, message: bytes) -> bytes:
        cipher = self._cipher()
        nonce = os.urandom(NONCE_SIZE)
        return nonce + cipher.encrypt(nonce, bytes(message), None)

    def decrypt(self, encrypted: bytes) -> bytes:
        cipher = self._cipher()
        if len(encrypted) < NONCE_SIZE:
            raise DecryptionError("message too short")
        nonce, ciphertext = encrypted[:NONCE_SIZE], encrypted[NONCE_SIZE:]
        try:
            return cipher.decrypt(bytes(nonce), bytes(ciphertext), None)
        except InvalidTag:
            raise DecryptionError("cipher: message authentication failed") from None