"""Tests for AES-GCM primitives, the envelope wire format and the KMS-backed cipher."""

from __future__ import annotations

import base64
import json

import pytest

from secure_environment import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    AesGcmCipher,
    CryptoError,
    EncryptedEnvelope,
    InMemoryKeyService,
    KmsEnvelopeCipher,
    SecureKey,
)


# =============================================================================
# SecureKey / AesGcmCipher
# =============================================================================


def test_secure_key_repr_is_redacted() -> None:
    key = SecureKey.generate()
    assert len(key) == AES_256_KEY_SIZE
    assert "REDACTED" in repr(key)
    assert key.as_bytes().hex() not in repr(key)


def test_secure_key_rejects_non_bytes() -> None:
    with pytest.raises(CryptoError):
        SecureKey("not bytes")  # type: ignore[arg-type]


def test_wiped_key_cannot_be_used() -> None:
    key = SecureKey(b"\x07" * AES_256_KEY_SIZE)
    assert not key.wiped

    key.wipe()
    assert key.wiped
    with pytest.raises(CryptoError, match="wiped"):
        key.as_bytes()
    with pytest.raises(CryptoError):
        AesGcmCipher.seal(key, b"payload")


def test_all_zero_key_is_not_wiped() -> None:
    key = SecureKey(bytes(AES_256_KEY_SIZE))
    assert not key.wiped
    assert key.as_bytes() == bytes(AES_256_KEY_SIZE)


def test_seal_open_with_aad() -> None:
    key = SecureKey.generate()
    sealed = AesGcmCipher.seal(key, b"payload", b"aad")
    assert len(sealed.nonce) == NONCE_SIZE
    assert AesGcmCipher.open(key, sealed, b"aad") == b"payload"


def test_open_with_wrong_aad_fails() -> None:
    key = SecureKey.generate()
    sealed = AesGcmCipher.seal(key, b"payload", b"aad")
    with pytest.raises(CryptoError, match="Decryption failed"):
        AesGcmCipher.open(key, sealed, b"other")


def test_short_key_rejected() -> None:
    with pytest.raises(CryptoError, match="Invalid key size"):
        AesGcmCipher.seal(SecureKey(b"short"), b"payload")


# =============================================================================
# EncryptedEnvelope
# =============================================================================


def test_envelope_wire_format_fields() -> None:
    envelope = EncryptedEnvelope(ciphertext=b"c" * 20, encrypted_key=b"k" * 8, nonce=b"n" * 12)
    doc = json.loads(envelope.to_bytes())
    assert set(doc) == {"c", "k", "n"}
    assert base64.standard_b64decode(doc["k"]) == b"k" * 8
    assert EncryptedEnvelope.from_bytes(envelope.to_bytes()) == envelope


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"not json",
        b"[1, 2, 3]",
        b'{"c": "AAAA", "n": "AAAA"}',
        b'{"c": 5, "k": "AAAA", "n": "AAAA"}',
        b'{"c": "AAAA", "k": "A", "n": "AAAA"}',
        b"\xff\xfe",
    ],
)
def test_malformed_envelope_rejected(payload: bytes) -> None:
    with pytest.raises(CryptoError, match="Malformed envelope"):
        EncryptedEnvelope.from_bytes(payload)


# =============================================================================
# KmsEnvelopeCipher
# =============================================================================


def test_encrypt_decrypt(cipher: KmsEnvelopeCipher, settings) -> None:
    plaintext = b"A=1\nB=hello's world\n"
    envelope = cipher.encrypt(settings.key, plaintext)
    assert plaintext not in envelope
    assert cipher.decrypt(settings.key, envelope) == plaintext


def test_each_encrypt_uses_fresh_data_key(cipher: KmsEnvelopeCipher, settings) -> None:
    first = EncryptedEnvelope.from_bytes(cipher.encrypt(settings.key, b"same"))
    second = EncryptedEnvelope.from_bytes(cipher.encrypt(settings.key, b"same"))
    assert first.encrypted_key != second.encrypted_key
    assert first.ciphertext != second.ciphertext


def test_decrypt_with_other_key_id_fails(
    key_service: InMemoryKeyService, cipher: KmsEnvelopeCipher, settings
) -> None:
    key_service.create_key("alias/other")
    envelope = cipher.encrypt(settings.key, b"secret")
    with pytest.raises(CryptoError):
        cipher.decrypt("alias/other", envelope)


def test_unknown_key_id_fails(cipher: KmsEnvelopeCipher) -> None:
    with pytest.raises(CryptoError, match="KMS key not found"):
        cipher.encrypt("alias/missing", b"secret")


def test_tampered_ciphertext_detected(cipher: KmsEnvelopeCipher, settings) -> None:
    envelope = EncryptedEnvelope.from_bytes(cipher.encrypt(settings.key, b"A=1"))
    flipped = bytes([envelope.ciphertext[0] ^ 0x01]) + envelope.ciphertext[1:]
    tampered = EncryptedEnvelope(flipped, envelope.encrypted_key, envelope.nonce)
    with pytest.raises(CryptoError, match="Decryption failed"):
        cipher.decrypt(settings.key, tampered.to_bytes())


def test_swapped_data_key_detected(cipher: KmsEnvelopeCipher, settings) -> None:
    first = EncryptedEnvelope.from_bytes(cipher.encrypt(settings.key, b"A=1"))
    second = EncryptedEnvelope.from_bytes(cipher.encrypt(settings.key, b"B=2"))
    mixed = EncryptedEnvelope(first.ciphertext, second.encrypted_key, first.nonce)
    with pytest.raises(CryptoError):
        cipher.decrypt(settings.key, mixed.to_bytes())


class _RecordingKeyService(InMemoryKeyService):
    """Keeps every plaintext data key it hands out."""

    def __init__(self) -> None:
        super().__init__()
        self.issued = []

    def generate_data_key(self, key_id):
        data_key = super().generate_data_key(key_id)
        self.issued.append(data_key.plaintext)
        return data_key

    def decrypt_data_key(self, key_id, ciphertext_blob):
        key = super().decrypt_data_key(key_id, ciphertext_blob)
        self.issued.append(key)
        return key


def test_data_keys_are_wiped_after_use() -> None:
    service = _RecordingKeyService()
    service.create_key("alias/app")
    cipher = KmsEnvelopeCipher(service)

    assert cipher.decrypt("alias/app", cipher.encrypt("alias/app", b"A=1")) == b"A=1"
    assert len(service.issued) == 2
    assert all(key.wiped for key in service.issued)
