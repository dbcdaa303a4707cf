"""
Ambient AWS session handling.

Credentials and the default region are resolved once per invocation and
shared by the KMS and S3 clients. Resolution never touches the network for
static or environment credentials, so a missing configuration fails before
any encrypt, decrypt, fetch or put request is made.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError

from .envelope import KmsEnvelopeCipher
from .errors import CredentialResolutionError
from .kms import AwsKmsKeyService
from .storage import S3BlobStore

logger = logging.getLogger(__name__)


def resolve_session(profile: Optional[str] = None) -> boto3.Session:
    """
    Build a boto3 session and verify it carries credentials and a region.

    Args:
        profile: Optional named profile (defaults to the standard chain)

    Returns:
        boto3.Session

    Raises:
        CredentialResolutionError: If credentials or region are unavailable
    """
    try:
        session = boto3.Session(profile_name=profile)
        credentials = session.get_credentials()
    except BotoCoreError as e:
        raise CredentialResolutionError(f"Unable to resolve AWS credentials: {e}") from e

    if credentials is None:
        raise CredentialResolutionError("No AWS credentials found")
    if not session.region_name:
        raise CredentialResolutionError(
            "No AWS region configured (set AWS_REGION or AWS_DEFAULT_REGION)"
        )

    logger.debug("AWS session resolved", extra={"region": session.region_name})
    return session


class AwsContext:
    """Lazily resolved AWS session plus the clients built from it."""

    def __init__(self, profile: Optional[str] = None) -> None:
        self._profile = profile
        self._session: Optional[boto3.Session] = None
        self._s3_clients: Dict[str, Any] = {}

    @property
    def session(self) -> boto3.Session:
        """Session resolved on first use, then reused."""
        if self._session is None:
            self._session = resolve_session(self._profile)
        return self._session

    def _client(self, service: str, region: Optional[str] = None) -> Any:
        try:
            return self.session.client(service, region_name=region or None)
        except BotoCoreError as e:
            raise CredentialResolutionError(f"Unable to create {service} client: {e}") from e

    def s3_client(self, region: str = "") -> Any:
        """
        S3 client for a bucket region, built once per region.

        Args:
            region: Bucket region, or "" for the session default

        Returns:
            boto3 S3 client

        Raises:
            CredentialResolutionError: If the session or client cannot be built
        """
        if region not in self._s3_clients:
            self._s3_clients[region] = self._client("s3", region)
        return self._s3_clients[region]

    def envelope_cipher(self) -> KmsEnvelopeCipher:
        """Envelope cipher backed by KMS in the session region."""
        return KmsEnvelopeCipher(AwsKmsKeyService(self._client("kms")))

    def blob_store(self) -> S3BlobStore:
        return S3BlobStore(self.s3_client)
