"""
Pytest configuration and fixtures for secure-environment tests.
"""

from __future__ import annotations

import pytest
from botocore.session import Session as BotocoreSession

from secure_environment import (
    InMemoryBlobStore,
    InMemoryKeyService,
    KmsEnvelopeCipher,
    SecureEnvironment,
    Settings,
)

KEY_ID = "arn:aws:kms:us-east-1:111122223333:key/test"
URL = "https://secrets.s3.amazonaws.com/app/prod.env"


@pytest.fixture
def key_service() -> InMemoryKeyService:
    """In-memory key service with a single master key registered."""
    service = InMemoryKeyService()
    service.create_key(KEY_ID)
    return service


@pytest.fixture
def cipher(key_service: InMemoryKeyService) -> KmsEnvelopeCipher:
    return KmsEnvelopeCipher(key_service)


@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    """Create an in-memory blob store for testing."""
    return InMemoryBlobStore()


@pytest.fixture
def flow(cipher: KmsEnvelopeCipher, memory_store: InMemoryBlobStore) -> SecureEnvironment:
    return SecureEnvironment(lambda: cipher, lambda: memory_store)


@pytest.fixture
def settings() -> Settings:
    return Settings(key=KEY_ID, url=URL)


def _client(service: str):
    """Botocore client with static dummy credentials, for use with Stubber."""
    return BotocoreSession().create_client(
        service,
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def kms_client():
    return _client("kms")


@pytest.fixture
def s3_client():
    return _client("s3")
