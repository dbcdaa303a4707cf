"""
AES-256-GCM primitives used to seal environment payloads.

This module provides:
- SecureKey: Data key wrapper with best-effort zeroization
- SealedData: Nonce plus ciphertext (auth tag appended)
- AesGcmCipher: Seal/open with optional associated data
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoError

AES_256_KEY_SIZE: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits
TAG_SIZE: int = 16  # 128 bits


class SecureKey:
    """
    Plaintext data key held in a mutable buffer.

    Data keys handed out by KMS live only as long as one seal or open
    call. Callers wipe them explicitly once done; collection wipes them
    too, but Python gives no guarantee about when that happens.
    """

    __slots__ = ("_bytes", "_wiped")

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Wrap raw key material.

        Args:
            key_bytes: Key material (32 bytes for AES-256)

        Raises:
            CryptoError: If key_bytes is not bytes or bytearray
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)
        self._wiped = False

    @classmethod
    def generate(cls) -> SecureKey:
        """Random 256-bit key from the OS CSPRNG."""
        return cls(secrets.token_bytes(AES_256_KEY_SIZE))

    @property
    def wiped(self) -> bool:
        """True once the key material has been zeroed."""
        return self._wiped

    def as_bytes(self) -> bytes:
        """
        Copy of the key material.

        Raises:
            CryptoError: If the key has already been wiped
        """
        if self.wiped:
            raise CryptoError("Key material has been wiped")
        return bytes(self._bytes)

    def wipe(self) -> None:
        """Zero the key material in place."""
        for i in range(len(self._bytes)):
            self._bytes[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted, so keys never leak into logs or tracebacks."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        if hasattr(self, "_bytes"):
            self.wipe()


@dataclass
class SealedData:
    """Output of AesGcmCipher.seal. `ciphertext` carries the 16-byte tag at its end."""

    nonce: bytes
    ciphertext: bytes


class AesGcmCipher:
    """AES-256-GCM authenticated encryption."""

    @staticmethod
    def _aead(key: SecureKey) -> AESGCM:
        if len(key) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
            )
        return AESGCM(key.as_bytes())

    @staticmethod
    def seal(
        key: SecureKey,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> SealedData:
        """
        Encrypt plaintext under a fresh random nonce.

        Args:
            key: 32-byte data key
            plaintext: Payload to encrypt
            aad: Associated data bound to the ciphertext

        Returns:
            SealedData with nonce and ciphertext

        Raises:
            CryptoError: If the key size is wrong
        """
        aead = AesGcmCipher._aead(key)
        nonce = secrets.token_bytes(NONCE_SIZE)
        return SealedData(nonce=nonce, ciphertext=aead.encrypt(nonce, plaintext, aad))

    @staticmethod
    def open(
        key: SecureKey,
        sealed: SealedData,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt and authenticate sealed data.

        Raises:
            CryptoError: On bad key/nonce size or failed authentication
        """
        aead = AesGcmCipher._aead(key)
        if len(sealed.nonce) != NONCE_SIZE:
            raise CryptoError(
                f"Invalid nonce size: expected {NONCE_SIZE}, got {len(sealed.nonce)}"
            )
        if len(sealed.ciphertext) < TAG_SIZE:
            raise CryptoError("Ciphertext shorter than authentication tag")

        try:
            return aead.decrypt(sealed.nonce, sealed.ciphertext, aad)
        except InvalidTag:
            # Generic message to avoid an oracle
            raise CryptoError("Decryption failed")
