"""
Blob store abstractions for encrypted envelopes.

This module provides:
- BlobStore: Abstract get/put contract addressed by StorageLocation
- S3BlobStore: Amazon S3 implementation (boto3)
- InMemoryBlobStore: Dict-backed implementation for testing
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from .errors import BlobStoreError, CredentialResolutionError
from .location import StorageLocation

logger = logging.getLogger(__name__)

ENVELOPE_CONTENT_TYPE: str = "application/json"


class BlobStore(ABC):
    """Opaque byte storage addressed by bucket/key/region."""

    @abstractmethod
    def get(self, location: StorageLocation) -> bytes:
        """Fetch the object at `location`."""
        ...

    @abstractmethod
    def put(
        self,
        location: StorageLocation,
        data: bytes,
        content_type: str = ENVELOPE_CONTENT_TYPE,
    ) -> None:
        """Create or replace the object at `location`."""
        ...


class S3BlobStore(BlobStore):
    """
    Amazon S3 blob store.

    Clients are obtained per call from `client_for_region`, which receives
    the location's region ("" means the session default).
    """

    def __init__(self, client_for_region: Callable[[str], Any]) -> None:
        self._client_for_region = client_for_region

    @staticmethod
    def _error(operation: str, location: StorageLocation, error: Exception) -> Exception:
        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return CredentialResolutionError(f"S3 credentials unavailable: {error}")
        detail = str(error)
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "Unknown")
            detail = f"({code}) {error}"
        return BlobStoreError(
            f"S3 {operation} s3://{location.bucket}/{location.key} failed: {detail}"
        )

    def get(self, location: StorageLocation) -> bytes:
        client = self._client_for_region(location.region)
        try:
            response = client.get_object(Bucket=location.bucket, Key=location.key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as e:
            raise self._error("get", location, e) from e

    def put(
        self,
        location: StorageLocation,
        data: bytes,
        content_type: str = ENVELOPE_CONTENT_TYPE,
    ) -> None:
        client = self._client_for_region(location.region)
        try:
            client.put_object(
                Bucket=location.bucket,
                Key=location.key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._error("put", location, e) from e
        logger.debug("Object written", extra={"bucket": location.bucket, "key": location.key})


class InMemoryBlobStore(BlobStore):
    """Blob store kept in a dict, keyed by (bucket, key)."""

    def __init__(self) -> None:
        self._objects: Dict[Tuple[str, str], Tuple[bytes, str]] = {}

    def get(self, location: StorageLocation) -> bytes:
        entry = self._objects.get((location.bucket, location.key))
        if entry is None:
            raise BlobStoreError(
                f"No such object: s3://{location.bucket}/{location.key}"
            )
        return entry[0]

    def put(
        self,
        location: StorageLocation,
        data: bytes,
        content_type: str = ENVELOPE_CONTENT_TYPE,
    ) -> None:
        self._objects[(location.bucket, location.key)] = (bytes(data), content_type)

    def content_type(self, location: StorageLocation) -> Optional[str]:
        """Content type recorded for `location`, if present."""
        entry = self._objects.get((location.bucket, location.key))
        return entry[1] if entry else None

    def __len__(self) -> int:
        return len(self._objects)
