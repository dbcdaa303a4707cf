"""
Key management service adapters.

This module provides:
- KeyService: Abstract contract for data key generation and unwrapping
- DataKey: Plaintext data key plus its wrapped (encrypted) form
- AwsKmsKeyService: AWS KMS backed implementation (boto3)
- InMemoryKeyService: Local master keys held in memory, for tests

The master key named by ``key_id`` never leaves the key service; only data
keys are handed out, in plaintext and in wrapped form.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from .crypto import AesGcmCipher, SealedData, SecureKey, NONCE_SIZE
from .errors import CredentialResolutionError, CryptoError

logger = logging.getLogger(__name__)

DATA_KEY_SPEC: str = "AES_256"


@dataclass
class DataKey:
    """Data key returned by a key service."""

    plaintext: SecureKey
    ciphertext_blob: bytes  # wrapped under the master key


class KeyService(ABC):
    """Contract for a remote (or simulated) key management service."""

    @abstractmethod
    def generate_data_key(self, key_id: str) -> DataKey:
        """Create a fresh data key wrapped under master key `key_id`."""
        ...

    @abstractmethod
    def decrypt_data_key(self, key_id: str, ciphertext_blob: bytes) -> SecureKey:
        """Unwrap a data key previously produced under `key_id`."""
        ...


def _client_error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class AwsKmsKeyService(KeyService):
    """
    AWS KMS key service.

    Every call is one authenticated request. Errors are not retried here;
    they are mapped onto CryptoError (or CredentialResolutionError) and
    propagate to the caller.
    """

    def __init__(self, client: Any) -> None:
        """
        Args:
            client: boto3 KMS client
        """
        self._client = client

    def _call(self, operation: str, **params: Any) -> Dict[str, Any]:
        try:
            return getattr(self._client, operation)(**params)
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise CredentialResolutionError(f"KMS credentials unavailable: {e}") from e
        except ClientError as e:
            code = _client_error_code(e)
            logger.debug("KMS %s failed", operation, extra={"code": code})
            raise CryptoError(f"KMS {operation} failed ({code}): {e}") from e
        except BotoCoreError as e:
            raise CryptoError(f"KMS {operation} failed: {e}") from e

    def generate_data_key(self, key_id: str) -> DataKey:
        """
        Generate a 256-bit data key with KMS GenerateDataKey.

        Args:
            key_id: KMS key id, alias or ARN of the master key

        Returns:
            DataKey with the plaintext key and its KMS ciphertext blob

        Raises:
            CredentialResolutionError: If no usable credentials are available
            CryptoError: If KMS rejects the request
        """
        response = self._call("generate_data_key", KeyId=key_id, KeySpec=DATA_KEY_SPEC)
        return DataKey(
            plaintext=SecureKey(response["Plaintext"]),
            ciphertext_blob=response["CiphertextBlob"],
        )

    def decrypt_data_key(self, key_id: str, ciphertext_blob: bytes) -> SecureKey:
        """
        Unwrap a data key with KMS Decrypt.

        The key id is sent along so KMS refuses blobs wrapped under a
        different master key.

        Args:
            key_id: KMS key id, alias or ARN of the master key
            ciphertext_blob: Wrapped data key from an envelope

        Returns:
            Plaintext data key

        Raises:
            CredentialResolutionError: If no usable credentials are available
            CryptoError: If KMS rejects the request
        """
        response = self._call("decrypt", KeyId=key_id, CiphertextBlob=ciphertext_blob)
        return SecureKey(response["Plaintext"])


class InMemoryKeyService(KeyService):
    """
    In-memory key service for testing and offline use.

    Holds one master key per key id. Wrapped data keys use the AEAD blob
    layout nonce || ciphertext || tag, with the key id as associated data so
    a blob only unwraps under the key id that produced it.
    """

    def __init__(self, master_keys: Optional[Dict[str, SecureKey]] = None) -> None:
        self._master_keys: Dict[str, SecureKey] = dict(master_keys or {})

    def create_key(self, key_id: str) -> str:
        """Register a new random master key and return its id."""
        self._master_keys[key_id] = SecureKey.generate()
        return key_id

    def _master_key(self, key_id: str) -> SecureKey:
        try:
            return self._master_keys[key_id]
        except KeyError:
            raise CryptoError(f"KMS key not found: {key_id}")

    def generate_data_key(self, key_id: str) -> DataKey:
        master = self._master_key(key_id)
        data_key = SecureKey.generate()
        wrapped = AesGcmCipher.seal(master, data_key.as_bytes(), key_id.encode("utf-8"))
        return DataKey(
            plaintext=data_key,
            ciphertext_blob=wrapped.nonce + wrapped.ciphertext,
        )

    def decrypt_data_key(self, key_id: str, ciphertext_blob: bytes) -> SecureKey:
        master = self._master_key(key_id)
        sealed = SealedData(
            nonce=ciphertext_blob[:NONCE_SIZE],
            ciphertext=ciphertext_blob[NONCE_SIZE:],
        )
        return SecureKey(AesGcmCipher.open(master, sealed, key_id.encode("utf-8")))
