"""
Import and export flows.

Import: local file -> EnvelopeCipher.encrypt -> BlobStore.put
Export: BlobStore.get -> EnvelopeCipher.decrypt -> parse_env -> stdout

Steps run strictly in sequence and every failure aborts the operation.
Cipher and store are built through factories, only once configuration has
been validated, so misconfiguration never reaches the network.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Callable, Optional, Union

from .config import Settings
from .envelope import EnvelopeCipher
from .envfile import parse_env, render_exports
from .errors import ConfigError, CryptoError, LocalIOError
from .location import StorageLocation, parse_location
from .storage import ENVELOPE_CONTENT_TYPE, BlobStore

PathLike = Union[str, Path]


class SecureEnvironment:
    """Sequences location parsing, blob storage, envelope cipher and env codec."""

    def __init__(
        self,
        cipher_factory: Callable[[], EnvelopeCipher],
        store_factory: Callable[[], BlobStore],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            cipher_factory: Builds the envelope cipher (may resolve credentials)
            store_factory: Builds the blob store (may resolve credentials)
            logger: Diagnostic sink (defaults to this module's logger)
        """
        self._cipher_factory = cipher_factory
        self._store_factory = store_factory
        self._log = logger or logging.getLogger(__name__)

    def import_env(
        self,
        settings: Settings,
        source_path: PathLike,
        placeholder_path: Optional[PathLike] = None,
    ) -> StorageLocation:
        """
        Encrypt a local env file and upload the envelope.

        Args:
            settings: key, url and env type are all required
            source_path: Plaintext env file
            placeholder_path: Local file created (or truncated) before the upload

        Returns:
            The location the envelope was written to

        Raises:
            ConfigError: If key, url or env type is empty
            LocalIOError: If a local file cannot be created or read
            AddressParseError: If the url is not a recognized S3 address
            CredentialResolutionError, CryptoError, BlobStoreError
        """
        if not (settings.url and settings.key and settings.env_type):
            self._log.debug("Missing required environment")
            raise ConfigError("Missing required environment variables")

        if placeholder_path is not None:
            try:
                open(placeholder_path, "wb").close()
            except OSError as e:
                raise LocalIOError(f"Cannot create {placeholder_path}: {e}") from e

        location = parse_location(settings.url)

        try:
            with open(source_path, "rb") as f:
                plaintext = f.read()
        except OSError as e:
            raise LocalIOError(f"Cannot read {source_path}: {e}") from e

        cipher = self._cipher_factory()
        envelope = cipher.encrypt(settings.key, plaintext)

        self._store_factory().put(location, envelope, ENVELOPE_CONTENT_TYPE)
        self._log.debug(
            "Secure environment imported",
            extra={"secureEnvironmentURL": location.url, "envType": settings.env_type},
        )
        return location

    def export_env(self, settings: Settings, out: IO[str]) -> int:
        """
        Fetch, decrypt and print the environment as export statements.

        An unset url or env type means secrets are not configured here:
        nothing is printed and no error is raised. A configured url with an
        empty key is a fatal misconfiguration.

        Args:
            settings: Resolved settings
            out: Text stream receiving one ``export`` line per variable

        Returns:
            Number of variables exported

        Raises:
            ConfigError: If url and env type are set but key is empty
            AddressParseError, CredentialResolutionError, BlobStoreError, CryptoError
        """
        if not (settings.url and settings.env_type):
            self._log.debug("Not configured to load secrets")
            return 0

        self._log.debug(
            "Attempting to load secure environment",
            extra={"secureEnvironmentURL": settings.url},
        )

        if not settings.key:
            self._log.debug("Cannot load secrets. No SECURE_ENVIRONMENT_KEY set")
            raise ConfigError("Cannot load secrets: no SECURE_ENVIRONMENT_KEY set")

        location = parse_location(settings.url)
        self._log.debug("Fetching envelope", extra={"secureEnvironmentURL": location.url})
        envelope = self._store_factory().get(location)

        self._log.debug("Connecting to KMS")
        plaintext = self._cipher_factory().decrypt(settings.key, envelope)

        try:
            text = plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CryptoError("Decrypted environment is not valid UTF-8") from e

        count = 0
        for line in render_exports(parse_env(text)):
            out.write(line + "\n")
            count += 1
        out.flush()
        return count
