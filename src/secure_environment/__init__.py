"""
Secure Environment

Keeps process environment files encrypted at rest in S3 using envelope
encryption under an AWS KMS key, and turns them back into shell ``export``
statements at start-up.

Overview
--------
- **Import**: plaintext env file -> KMS data key + AES-256-GCM -> S3 object
- **Export**: S3 object -> KMS unwrap + AES-256-GCM -> ``export KEY='value'``

Quick Start
-----------
```python
import sys
from secure_environment import AwsContext, SecureEnvironment, Settings

context = AwsContext()
flow = SecureEnvironment(context.envelope_cipher, context.blob_store)
settings = Settings(
    key="alias/app-secrets",
    url="https://my-bucket.s3.amazonaws.com/app/prod.env",
)

flow.import_env(settings, "prod.env")
flow.export_env(settings, sys.stdout)
```

Or from a shell:

    eval "$(secure-environment export)"

Modules
-------
- `location`: S3 URL parsing (four legacy address shapes)
- `crypto`: AES-256-GCM primitives
- `kms`: Key service contract, AWS KMS and in-memory implementations
- `envelope`: Envelope wire format and cipher
- `storage`: Blob store contract, S3 and in-memory implementations
- `envfile`: Env file parsing and export rendering
- `flow`: Import/export orchestration
- `config`, `logs`, `aws`, `cli`: Runtime wiring
"""

__version__ = "0.1.0"

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    AddressParseError,
    BlobStoreError,
    ConfigError,
    CredentialResolutionError,
    CryptoError,
    LocalIOError,
    SecureEnvironmentError,
)

# ============================================================================
# Core Exports
# ============================================================================

from .location import StorageLocation, parse_location
from .crypto import AES_256_KEY_SIZE, NONCE_SIZE, TAG_SIZE, AesGcmCipher, SecureKey
from .kms import AwsKmsKeyService, DataKey, InMemoryKeyService, KeyService
from .envelope import EncryptedEnvelope, EnvelopeCipher, KmsEnvelopeCipher
from .storage import BlobStore, InMemoryBlobStore, S3BlobStore
from .envfile import EnvEntry, escape_single_quote, parse_env, render_export, render_exports

# ============================================================================
# Runtime Exports
# ============================================================================

from .config import Settings
from .aws import AwsContext, resolve_session
from .flow import SecureEnvironment

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Errors
    "SecureEnvironmentError",
    "ConfigError",
    "AddressParseError",
    "CredentialResolutionError",
    "CryptoError",
    "BlobStoreError",
    "LocalIOError",
    # Location
    "StorageLocation",
    "parse_location",
    # Crypto
    "AES_256_KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "AesGcmCipher",
    "SecureKey",
    # Key service
    "KeyService",
    "DataKey",
    "AwsKmsKeyService",
    "InMemoryKeyService",
    # Envelope
    "EncryptedEnvelope",
    "EnvelopeCipher",
    "KmsEnvelopeCipher",
    # Storage
    "BlobStore",
    "S3BlobStore",
    "InMemoryBlobStore",
    # Env codec
    "EnvEntry",
    "parse_env",
    "escape_single_quote",
    "render_export",
    "render_exports",
    # Runtime
    "Settings",
    "AwsContext",
    "resolve_session",
    "SecureEnvironment",
]
