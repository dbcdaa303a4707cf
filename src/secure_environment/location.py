"""
Object-storage address parsing.

Four historical S3 URL shapes are accepted and normalized into a
StorageLocation (bucket, key, region):

1. ``https://{bucket}.s3.amazonaws.com/{key}``            region: session default
2. ``https://{bucket}.s3-{region}.amazonaws.com/{key}``   region: from host
3. ``https://s3.amazonaws.com/{bucket}/{key}``            region: us-east-1
4. ``https://s3-{region}.amazonaws.com/{bucket}/{key}``   region: from host

For reference: http://docs.aws.amazon.com/AmazonS3/latest/dev/UsingBucket.html
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .errors import AddressParseError

# Region implied by the unregioned path-style endpoint
DEFAULT_PATH_STYLE_REGION: str = "us-east-1"

_KEY_TAIL = r"(?:/?\Z|/(?P<key>.*))"


@dataclass(frozen=True)
class StorageLocation:
    """Canonical object location. An empty region means the session default applies."""

    bucket: str
    key: str
    region: str = ""

    @property
    def url(self) -> str:
        """Virtual-hosted URL for this location (used in log output)."""
        if self.region:
            return f"https://{self.bucket}.s3-{self.region}.amazonaws.com/{self.key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{self.key}"


@dataclass(frozen=True)
class _Matcher:
    """A tagged address shape: compiled pattern plus how to build the location."""

    name: str
    pattern: re.Pattern
    build: Callable[[re.Match], StorageLocation]

    def match(self, url: str) -> Optional[StorageLocation]:
        m = self.pattern.match(url)
        if m is None:
            return None
        return self.build(m)


def _key(m: re.Match) -> str:
    return m.group("key") or ""


_MATCHERS: Tuple[_Matcher, ...] = (
    _Matcher(
        name="virtual-hosted",
        pattern=re.compile(r"^https?://(?P<bucket>[^./]+)\.s3\.amazonaws\.com" + _KEY_TAIL),
        build=lambda m: StorageLocation(m.group("bucket"), _key(m), ""),
    ),
    _Matcher(
        name="virtual-hosted-regional",
        pattern=re.compile(
            r"^https?://(?P<bucket>[^./]+)\.s3-(?P<region>[^./]+)\.amazonaws\.com" + _KEY_TAIL
        ),
        build=lambda m: StorageLocation(m.group("bucket"), _key(m), m.group("region")),
    ),
    _Matcher(
        name="path-style",
        pattern=re.compile(r"^https?://s3\.amazonaws\.com/(?P<bucket>[^/]+)" + _KEY_TAIL),
        build=lambda m: StorageLocation(m.group("bucket"), _key(m), DEFAULT_PATH_STYLE_REGION),
    ),
    _Matcher(
        name="path-style-regional",
        pattern=re.compile(
            r"^https?://s3-(?P<region>[^./]+)\.amazonaws\.com/(?P<bucket>[^/]+)" + _KEY_TAIL
        ),
        build=lambda m: StorageLocation(m.group("bucket"), _key(m), m.group("region")),
    ),
)


def address_shapes() -> List[str]:
    """Names of the accepted address shapes, in matching order."""
    return [matcher.name for matcher in _MATCHERS]


def parse_location(url: str) -> StorageLocation:
    """
    Parse any accepted S3 URL into a StorageLocation.

    Args:
        url: Object-storage URL

    Returns:
        StorageLocation with bucket, key and region

    Raises:
        AddressParseError: If no address shape matches
    """
    for matcher in _MATCHERS:
        location = matcher.match(url)
        if location is not None:
            return location
    raise AddressParseError(f"not a recognized object-storage address: {url!r}")
