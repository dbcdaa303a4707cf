"""
Exception classes for secure-environment operations.

Every failure surfaces immediately to the caller; only the command line
entry point turns these into an exit status.
"""

from __future__ import annotations


class SecureEnvironmentError(Exception):
    """Base exception for all secure-environment operations."""

    pass


class ConfigError(SecureEnvironmentError):
    """A required setting (key, url, env type) is missing or empty."""

    pass


class AddressParseError(SecureEnvironmentError):
    """URL does not match any recognized object-storage address shape."""

    pass


class CredentialResolutionError(SecureEnvironmentError):
    """Ambient AWS credentials or region could not be resolved."""

    pass


class CryptoError(SecureEnvironmentError):
    """Encryption or decryption failed (key access, malformed envelope, tampering)."""

    pass


class BlobStoreError(SecureEnvironmentError):
    """Remote object fetch or put failed."""

    pass


class LocalIOError(SecureEnvironmentError):
    """Local file could not be opened, read or created."""

    pass
