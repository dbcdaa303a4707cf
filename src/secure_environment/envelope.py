"""
Envelope encryption of environment payloads.

This module provides:
- EncryptedEnvelope: Wire format stored in the blob store
- EnvelopeCipher: Abstract encrypt/decrypt contract
- KmsEnvelopeCipher: Envelope cipher backed by a KeyService

Encrypt flow:
1. Ask the key service for a fresh data key under the caller's key id
2. Seal the payload with AES-256-GCM (AAD = wrapped data key)
3. Bundle ciphertext, wrapped data key and nonce as JSON

Decrypt reverses the flow and always goes back to the key service to
unwrap the data key; nothing can be decrypted locally.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .crypto import AesGcmCipher, SealedData
from .errors import CryptoError
from .kms import KeyService

logger = logging.getLogger(__name__)


def _b64encode(data: bytes) -> str:
    return base64.standard_b64encode(data).decode("ascii")


def _b64decode(field: str, value: object) -> bytes:
    if not isinstance(value, str):
        raise CryptoError(f"Malformed envelope: field {field!r} is not a string")
    try:
        return base64.standard_b64decode(value.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise CryptoError(f"Malformed envelope: field {field!r}: {e}") from e


@dataclass
class EncryptedEnvelope:
    """
    Ciphertext plus everything needed to decrypt it (given KMS access).

    Serialized as ``{"c": ..., "k": ..., "n": ...}`` with standard base64
    byte fields.
    """

    ciphertext: bytes
    encrypted_key: bytes
    nonce: bytes

    def to_bytes(self) -> bytes:
        """Serialize envelope to its JSON wire form."""
        return json.dumps(
            {
                "c": _b64encode(self.ciphertext),
                "k": _b64encode(self.encrypted_key),
                "n": _b64encode(self.nonce),
            }
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> EncryptedEnvelope:
        """
        Deserialize envelope from its JSON wire form.

        Raises:
            CryptoError: If the payload is not a well-formed envelope
        """
        try:
            doc = json.loads(data)
        except (ValueError, UnicodeDecodeError) as e:
            raise CryptoError(f"Malformed envelope: {e}") from e
        if not isinstance(doc, dict):
            raise CryptoError("Malformed envelope: expected a JSON object")

        envelope = cls(
            ciphertext=_b64decode("c", doc.get("c", "")),
            encrypted_key=_b64decode("k", doc.get("k", "")),
            nonce=_b64decode("n", doc.get("n", "")),
        )
        if not envelope.encrypted_key:
            raise CryptoError("Malformed envelope: missing encrypted data key")
        return envelope


class EnvelopeCipher(ABC):
    """Encrypt/decrypt contract. Envelopes are opaque bytes to every other component."""

    @abstractmethod
    def encrypt(self, key_id: str, plaintext: bytes) -> bytes:
        """Encrypt `plaintext` under master key `key_id`, returning envelope bytes."""
        ...

    @abstractmethod
    def decrypt(self, key_id: str, envelope: bytes) -> bytes:
        """Decrypt envelope bytes produced by `encrypt` with the same `key_id`."""
        ...


class KmsEnvelopeCipher(EnvelopeCipher):
    """Envelope cipher that obtains its data keys from a KeyService."""

    def __init__(self, key_service: KeyService) -> None:
        self._key_service = key_service

    def encrypt(self, key_id: str, plaintext: bytes) -> bytes:
        data_key = self._key_service.generate_data_key(key_id)
        try:
            sealed = AesGcmCipher.seal(
                data_key.plaintext, plaintext, data_key.ciphertext_blob
            )
        finally:
            data_key.plaintext.wipe()
        logger.debug("Payload encrypted", extra={"bytes": len(plaintext)})
        return EncryptedEnvelope(
            ciphertext=sealed.ciphertext,
            encrypted_key=data_key.ciphertext_blob,
            nonce=sealed.nonce,
        ).to_bytes()

    def decrypt(self, key_id: str, envelope: bytes) -> bytes:
        parsed = EncryptedEnvelope.from_bytes(envelope)
        data_key = self._key_service.decrypt_data_key(key_id, parsed.encrypted_key)
        try:
            return AesGcmCipher.open(
                data_key,
                SealedData(nonce=parsed.nonce, ciphertext=parsed.ciphertext),
                parsed.encrypted_key,
            )
        finally:
            data_key.wipe()
